"""Tests for service layer structured logging.

These tests verify that import and enrichment operations emit structured
log entries with appropriate context information.
"""

import logging

from src.services.enrichment_dispatcher import EnrichmentDispatcher, EnrichmentJob
from src.services.logging_utils import configure_logging, get_service_logger, log_operation
from src.services.recipe_import_service import import_recipes


class TestLoggingUtilities:
    """Tests for logging utility functions."""

    def test_get_service_logger_returns_logger(self):
        """get_service_logger returns a configured Logger instance."""
        logger = get_service_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "kitchen_costing.services.test_module"

    def test_get_service_logger_extracts_module_name(self):
        """get_service_logger extracts module name from full path."""
        logger = get_service_logger("src.services.recipe_import_service")
        assert logger.name == "kitchen_costing.services.recipe_import_service"

    def test_log_operation_logs_at_info_level(self, caplog):
        """log_operation logs at INFO level by default."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="test_op", outcome="success", entity_id=123)

        assert "test_op: success" in caplog.text
        assert caplog.records[0].levelno == logging.INFO

    def test_log_operation_logs_at_custom_level(self, caplog):
        """log_operation respects custom log level."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.DEBUG):
            log_operation(logger, operation="debug_op", outcome="debug_outcome", level=logging.DEBUG)

        assert "debug_op: debug_outcome" in caplog.text

    def test_log_operation_includes_extra_context(self, caplog):
        """log_operation includes extra context in log records."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="context_test", outcome="success", record_id=42, row_index=3)

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.operation == "context_test"
        assert record.outcome == "success"
        assert record.record_id == 42
        assert record.row_index == 3

    def test_configure_logging_sets_application_level(self):
        app_logger = logging.getLogger("kitchen_costing")
        src_logger = logging.getLogger("src")
        try:
            configure_logging(logging.DEBUG)
            assert app_logger.level == logging.DEBUG
            configure_logging(logging.INFO)
            assert app_logger.level == logging.INFO
            assert src_logger.level == logging.INFO
        finally:
            app_logger.setLevel(logging.NOTSET)
            src_logger.setLevel(logging.NOTSET)


class TestImportLogging:
    """Import and enrichment operations log their outcomes."""

    def test_import_logs_commit(self, catalog_store, record_store, caplog):
        rows = [
            {
                "name": "Tomato Soup",
                "instructions": "Boil everything for 20 minutes total time.",
                "ingredientsString": "Tomato:500:g",
            }
        ]

        with caplog.at_level(logging.INFO, logger="kitchen_costing"):
            import_recipes(rows, catalog_store=catalog_store, record_store=record_store, enrich=False)

        committed = [r for r in caplog.records if getattr(r, "outcome", None) == "committed"]
        assert len(committed) == 1
        assert committed[0].operation == "import_recipes"
        assert committed[0].imported_count == 1

    def test_rejected_rows_logged_at_debug(self, catalog_store, record_store, caplog):
        rows = [{"name": "Soup", "instructions": "Too short", "ingredientsString": "Garlic:1:g"}]

        with caplog.at_level(logging.DEBUG, logger="kitchen_costing"):
            import_recipes(rows, catalog_store=catalog_store, record_store=record_store, enrich=False)

        rejected = [r for r in caplog.records if getattr(r, "outcome", None) == "row_rejected"]
        assert len(rejected) == 1
        assert rejected[0].levelno == logging.DEBUG
        assert rejected[0].row_index == 0
        assert rejected[0].recipe_name == "Soup"

    def test_failed_enrichment_logged_with_context(self, record_store, make_estimator, caplog):
        dispatcher = EnrichmentDispatcher(make_estimator(fail_for={"Soup"}), record_store)

        with caplog.at_level(logging.WARNING, logger="kitchen_costing"):
            dispatcher.fire(EnrichmentJob(7, "Soup", "1g Salt"))
            assert dispatcher.wait(timeout=5)
        dispatcher.shutdown()

        failures = [r for r in caplog.records if getattr(r, "outcome", None) == "estimator_failed"]
        assert len(failures) == 1
        assert failures[0].record_id == 7
        assert failures[0].recipe_name == "Soup"
        assert "no estimate for Soup" in failures[0].error
