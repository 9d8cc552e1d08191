"""
Catalog Index - case-insensitive name lookup over a catalog snapshot.

Built once per import call from the full ingredient catalog and discarded
afterwards; nothing is shared between calls.

Usage:
    from src.services.catalog_index import build_catalog_index

    index = build_catalog_index(catalog_store.list_all())
    entry = index.lookup("tomato")
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import (
    DUPLICATE_POLICIES,
    DUPLICATE_POLICY_LAST_WINS,
    DUPLICATE_POLICY_REJECT,
)

logger = get_service_logger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """Read-only snapshot of one catalog ingredient."""

    id: int
    name: str
    cost_per_unit: Optional[float]
    base_unit: str

    @classmethod
    def from_model(cls, ingredient) -> "CatalogEntry":
        """Snapshot an Ingredient ORM row."""
        return cls(
            id=ingredient.id,
            name=ingredient.name,
            cost_per_unit=ingredient.cost_per_unit,
            base_unit=ingredient.unit,
        )


def normalize_name(name: str) -> str:
    """Join key for catalog lookups."""
    return name.strip().lower()


class CatalogIndex:
    """
    Mapping of normalized ingredient name to CatalogEntry.

    Attributes:
        duplicates: normalized name -> every entry sharing it, in catalog order.
            Only names with more than one entry appear here.
        duplicate_policy: "last_wins" resolves a duplicated name to the last
            entry; "reject" makes it unresolvable.
    """

    def __init__(
        self,
        entries: Dict[str, CatalogEntry],
        duplicates: Dict[str, List[CatalogEntry]],
        duplicate_policy: str = DUPLICATE_POLICY_LAST_WINS,
    ):
        self._entries = entries
        self.duplicates = duplicates
        self.duplicate_policy = duplicate_policy

    def lookup(self, name: str) -> Optional[CatalogEntry]:
        """
        Resolve an ingredient name.

        Returns:
            The matching entry, or None when the name is unknown or, under
            the reject policy, ambiguous.
        """
        key = normalize_name(name)
        if self.duplicate_policy == DUPLICATE_POLICY_REJECT and key in self.duplicates:
            return None
        return self._entries.get(key)

    def is_ambiguous(self, name: str) -> bool:
        """True when the name is duplicated and the policy rejects duplicates."""
        return (
            self.duplicate_policy == DUPLICATE_POLICY_REJECT
            and normalize_name(name) in self.duplicates
        )

    def duplicate_count(self, name: str) -> int:
        return len(self.duplicates.get(normalize_name(name), ()))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self._entries)


def build_catalog_index(
    entries: Iterable[CatalogEntry],
    duplicate_policy: str = DUPLICATE_POLICY_LAST_WINS,
) -> CatalogIndex:
    """
    Build a case-insensitive lookup from the full catalog.

    Args:
        entries: Every catalog entry in the snapshot
        duplicate_policy: "last_wins" (default) or "reject"

    Returns:
        CatalogIndex; an empty catalog gives an empty index

    Raises:
        TypeError: If entries is None
        ValueError: If duplicate_policy is unknown
    """
    if entries is None:
        raise TypeError("build_catalog_index() requires a catalog, got None")
    if duplicate_policy not in DUPLICATE_POLICIES:
        raise ValueError(f"Unknown duplicate policy: {duplicate_policy!r}")

    index: Dict[str, CatalogEntry] = {}
    seen: Dict[str, List[CatalogEntry]] = {}
    for entry in entries:
        key = normalize_name(entry.name)
        seen.setdefault(key, []).append(entry)
        index[key] = entry

    duplicates = {key: group for key, group in seen.items() if len(group) > 1}
    for key, group in duplicates.items():
        log_operation(
            logger,
            operation="build_catalog_index",
            outcome="duplicate_name",
            level=logging.WARNING,
            ingredient_name=key,
            catalog_ids=[e.id for e in group],
            policy=duplicate_policy,
        )

    log_operation(
        logger,
        operation="build_catalog_index",
        outcome="built",
        level=logging.DEBUG,
        entry_count=len(index),
        duplicate_count=len(duplicates),
    )
    return CatalogIndex(index, duplicates, duplicate_policy)
