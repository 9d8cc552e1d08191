"""
Recipe Import Service - batch import and costing of recipes.

Pipeline for one import call:
1. Build a case-insensitive catalog index from a fresh catalog snapshot
2. Validate, resolve and cost every row, in input order
3. Commit all accepted rows in one atomic write
4. Fire one nutrition enrichment job per committed recipe (not awaited)

Rows that fail validation are reported individually and never block the
others. If the atomic write fails, nothing is imported and every row is
reported as failed.

Usage:
    from src.services.recipe_import_service import import_recipes

    result = import_recipes(rows)
    print(result.get_summary())
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from src.services.catalog_index import build_catalog_index
from src.services.enrichment_dispatcher import (
    EnrichmentDispatcher,
    EnrichmentJob,
    get_enrichment_dispatcher,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.row_validator import (
    ImportErrorDetail,
    ImportRow,
    RecipeDraft,
    validate_row,
)
from src.services.stores import CatalogStore, RecordStore, SqlCatalogStore, SqlRecordStore
from src.utils.config import get_config
from src.utils.constants import (
    COMMIT_FAILURE_LABEL,
    COMMIT_FAILURE_ROW_INDEX,
    ERROR_COMMIT_FAILED,
)

logger = get_service_logger(__name__)

RowInput = Union[ImportRow, Mapping[str, Any]]


# ============================================================================
# Result Class
# ============================================================================


@dataclass
class ImportResult:
    """
    Result of one import call.

    Attributes:
        success: True when something was imported or nothing went wrong
        imported_count: Recipes committed
        error_count: Rows not imported (all rows after a commit failure)
        errors: Per-row details, in input order; a commit failure adds a
            leading entry with row_index -1
        record_ids: Ids of the committed recipes, in input order
    """

    success: bool
    imported_count: int
    error_count: int
    errors: List[ImportErrorDetail] = field(default_factory=list)
    record_ids: List[int] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def commit_failed(self) -> bool:
        return any(e.row_index == COMMIT_FAILURE_ROW_INDEX for e in self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "imported_count": self.imported_count,
            "error_count": self.error_count,
            "errors": [e.to_dict() for e in self.errors],
            "record_ids": list(self.record_ids),
        }

    def get_summary(self) -> str:
        """Generate user-friendly summary for CLI display."""
        lines = [
            "=" * 60,
            "Recipe Import Summary",
            "=" * 60,
            f"  Imported: {self.imported_count}",
            f"  Failed:   {self.error_count}",
        ]

        if self.errors:
            lines.append("\nErrors:")
            for detail in self.errors[:10]:
                where = "batch" if detail.row_index < 0 else f"row {detail.row_index}"
                lines.append(f"  - [{where}] {detail.recipe_name}")
                for message in detail.errors:
                    lines.append(f"      {message}")
            if len(self.errors) > 10:
                lines.append(f"  ... and {len(self.errors) - 10} more rows with errors")

        lines.append("=" * 60)
        return "\n".join(lines)


# ============================================================================
# Batch Commit
# ============================================================================


def commit_batch(drafts: Sequence[RecipeDraft], record_store: RecordStore) -> List[int]:
    """
    Persist all drafts in exactly one atomic write.

    Args:
        drafts: Accepted rows, in input order
        record_store: Store performing the write

    Returns:
        New record ids; [] without touching the store when drafts is empty

    Raises:
        Whatever the store raises; nothing has been committed in that case
    """
    if not drafts:
        return []
    return record_store.create_all(list(drafts))


def _dispatch_enrichment(
    dispatcher: Optional[EnrichmentDispatcher],
    drafts: Sequence[RecipeDraft],
    record_ids: Sequence[int],
) -> None:
    if dispatcher is None:
        log_operation(
            logger,
            operation="import_recipes",
            outcome="enrichment_disabled",
            level=logging.DEBUG,
            record_count=len(record_ids),
        )
        return
    for draft, record_id in zip(drafts, record_ids):
        dispatcher.fire(EnrichmentJob(record_id, draft.name, draft.ingredient_summary))


def _to_row(raw: RowInput) -> ImportRow:
    if isinstance(raw, ImportRow):
        return raw
    return ImportRow.from_dict(raw)


# ============================================================================
# Entry Point
# ============================================================================


def import_recipes(
    rows: Sequence[RowInput],
    catalog_store: Optional[CatalogStore] = None,
    record_store: Optional[RecordStore] = None,
    dispatcher: Optional[EnrichmentDispatcher] = None,
    enrich: bool = True,
) -> ImportResult:
    """
    Import a batch of recipe rows.

    Args:
        rows: ImportRow instances or dicts (camelCase or snake_case keys)
        catalog_store: Catalog source (default: SqlCatalogStore)
        record_store: Recipe sink (default: SqlRecordStore)
        dispatcher: Enrichment dispatcher (default: the global dispatcher,
            None when no estimator is configured)
        enrich: If False, skip nutrition enrichment entirely

    Returns:
        ImportResult. Enrichment may still be running when this returns.

    Raises:
        DatabaseError: If the catalog cannot be read
    """
    catalog_store = catalog_store or SqlCatalogStore()
    record_store = record_store or SqlRecordStore()
    if enrich and dispatcher is None:
        dispatcher = get_enrichment_dispatcher()

    log_operation(logger, operation="import_recipes", outcome="started", row_count=len(rows))

    catalog_index = build_catalog_index(
        catalog_store.list_all(), duplicate_policy=get_config().duplicate_policy
    )

    drafts: List[RecipeDraft] = []
    errors: List[ImportErrorDetail] = []
    for row_index, raw in enumerate(rows):
        outcome = validate_row(row_index, _to_row(raw), catalog_index)
        if outcome.accepted:
            drafts.append(outcome.draft)
        else:
            errors.append(outcome.to_error_detail())
            log_operation(
                logger,
                operation="import_recipes",
                outcome="row_rejected",
                level=logging.DEBUG,
                row_index=row_index,
                recipe_name=outcome.recipe_name,
                errors=list(outcome.errors),
            )

    if not drafts:
        log_operation(
            logger,
            operation="import_recipes",
            outcome="nothing_to_commit",
            error_count=len(errors),
        )
        return ImportResult(
            success=not errors,
            imported_count=0,
            error_count=len(errors),
            errors=errors,
        )

    try:
        record_ids = commit_batch(drafts, record_store)
    except Exception as e:
        log_operation(
            logger,
            operation="import_recipes",
            outcome="commit_failed",
            level=logging.ERROR,
            draft_count=len(drafts),
            error=str(e),
        )
        commit_error = ImportErrorDetail(
            row_index=COMMIT_FAILURE_ROW_INDEX,
            recipe_name=COMMIT_FAILURE_LABEL,
            errors=[ERROR_COMMIT_FAILED.format(reason=e)],
        )
        return ImportResult(
            success=False,
            imported_count=0,
            error_count=len(rows),
            errors=[commit_error] + errors,
        )

    log_operation(
        logger,
        operation="import_recipes",
        outcome="committed",
        imported_count=len(record_ids),
        error_count=len(errors),
    )

    # Only ids from a completed commit reach the dispatcher
    if enrich:
        _dispatch_enrichment(dispatcher, drafts, record_ids)

    return ImportResult(
        success=True,
        imported_count=len(record_ids),
        error_count=len(errors),
        errors=errors,
        record_ids=list(record_ids),
    )
