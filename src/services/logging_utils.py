"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across the import pipeline, the
enrichment dispatcher and the catalog services.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    # Log successful operation
    log_operation(
        logger,
        operation="import_recipes",
        outcome="committed",
        imported_count=12,
    )

    # Log a dropped enrichment
    log_operation(
        logger,
        operation="enrich_recipe",
        outcome="estimator_failed",
        level=logging.WARNING,
        record_id=45,
        error="HTTP 503",
    )
"""

import logging
from typing import Any, Optional

LOGGER_PREFIX = "kitchen_costing.services"

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'kitchen_costing.services' prefix.

    Example:
        >>> logger = get_service_logger("src.services.recipe_import_service")
        >>> logger.name
        'kitchen_costing.services.recipe_import_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging,
    so handlers and tests can read e.g. ``record.record_id``.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "import_recipes", "enrich_recipe")
        outcome: Outcome description (e.g., "committed", "commit_failed")
        level: Log level (default: INFO). Use DEBUG for per-row logs.
        **context: Additional context fields (row_index, record_id, error, ...)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)


def configure_logging(level: int = logging.INFO, fmt: Optional[str] = None) -> None:
    """
    Configure root logging for command-line use.

    Args:
        level: Minimum level for the application loggers
        fmt: Optional format string (defaults to DEFAULT_LOG_FORMAT)
    """
    logging.basicConfig(level=logging.WARNING, format=fmt or DEFAULT_LOG_FORMAT)
    logging.getLogger("kitchen_costing").setLevel(level)
    logging.getLogger("src").setLevel(level)
