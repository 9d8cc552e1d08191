"""Tests for the background nutrition enrichment dispatcher."""

import logging
import time

import pytest

from src.services.enrichment_dispatcher import (
    EnrichmentDispatcher,
    EnrichmentJob,
    EnrichmentOutcome,
    get_enrichment_dispatcher,
    shutdown_enrichment_dispatcher,
)
from src.services.row_validator import RecipeDraft


def draft(name):
    return RecipeDraft(name=name, instructions="Mix it all together.", ingredients=(), cost=0.0)


@pytest.fixture
def stored_ids(record_store):
    """Two recipes already committed to the in-memory store."""
    return record_store.create_all([draft("Soup"), draft("Salad")])


@pytest.fixture
def dispatcher_factory(record_store):
    created = []

    def factory(estimator, store=None, **kwargs):
        dispatcher = EnrichmentDispatcher(estimator, store or record_store, **kwargs)
        created.append(dispatcher)
        return dispatcher

    yield factory
    for dispatcher in created:
        dispatcher.shutdown(wait=False, cancel_pending=True)


class TestFire:
    """Tests for EnrichmentDispatcher.fire()."""

    def test_successful_job_updates_record(self, record_store, stored_ids, stub_estimator, dispatcher_factory):
        dispatcher = dispatcher_factory(stub_estimator)

        dispatcher.fire(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))
        assert dispatcher.wait(timeout=5)

        assert stub_estimator.calls == [("Soup", "500g Tomato")]
        assert record_store.records[stored_ids[0]]["nutritional_info"] == {
            "calories": 250.0,
            "proteinGrams": 8.0,
            "fatGrams": 5.0,
            "carbohydrateGrams": 40.0,
            "disclaimer": "Estimates only.",
        }
        assert record_store.records[stored_ids[1]]["nutritional_info"] is None

    def test_fire_does_not_wait_for_estimator(self, stored_ids, make_estimator, dispatcher_factory):
        dispatcher = dispatcher_factory(make_estimator(delay=0.5))

        start = time.monotonic()
        result = dispatcher.fire(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))
        elapsed = time.monotonic() - start

        assert result is None
        assert elapsed < 0.4
        assert dispatcher.wait(timeout=5)

    def test_one_failure_does_not_affect_other_jobs(self, record_store, stored_ids, make_estimator, dispatcher_factory):
        dispatcher = dispatcher_factory(make_estimator(fail_for={"Soup"}))

        dispatcher.fire(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))
        dispatcher.fire(EnrichmentJob(stored_ids[1], "Salad", "1unit Onion"))
        assert dispatcher.wait(timeout=5)

        assert record_store.records[stored_ids[0]]["nutritional_info"] is None
        assert record_store.records[stored_ids[1]]["nutritional_info"] is not None

    def test_fire_after_shutdown_drops_job(self, record_store, stored_ids, stub_estimator, caplog):
        dispatcher = EnrichmentDispatcher(stub_estimator, record_store)
        dispatcher.shutdown()

        with caplog.at_level(logging.WARNING, logger="kitchen_costing"):
            dispatcher.fire(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))

        assert stub_estimator.calls == []
        assert dispatcher.pending_count == 0
        assert any(getattr(r, "outcome", None) == "dropped_dispatcher_closed" for r in caplog.records)

    def test_wait_with_nothing_pending(self, stub_estimator, dispatcher_factory):
        assert dispatcher_factory(stub_estimator).wait(timeout=0) is True

    def test_wait_times_out_on_slow_job(self, stored_ids, make_estimator, dispatcher_factory):
        dispatcher = dispatcher_factory(make_estimator(delay=0.5))

        dispatcher.fire(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))

        assert dispatcher.wait(timeout=0.01) is False
        assert dispatcher.pending_count == 1
        assert dispatcher.wait(timeout=5) is True


class TestJobOutcomes:
    """Each way a single job can end; failures never raise."""

    def test_enriched(self, stored_ids, stub_estimator, dispatcher_factory):
        dispatcher = dispatcher_factory(stub_estimator)
        outcome = dispatcher._run(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))
        assert outcome is EnrichmentOutcome.ENRICHED

    def test_estimator_error(self, record_store, stored_ids, make_estimator, dispatcher_factory, caplog):
        dispatcher = dispatcher_factory(make_estimator(fail_for={"Soup"}))

        with caplog.at_level(logging.WARNING, logger="kitchen_costing"):
            outcome = dispatcher._run(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))

        assert outcome is EnrichmentOutcome.ESTIMATOR_FAILED
        assert record_store.updates == []
        record = next(r for r in caplog.records if getattr(r, "outcome", None) == "estimator_failed")
        assert record.unexpected is False

    def test_unexpected_estimator_exception(self, stored_ids, make_estimator, dispatcher_factory, caplog):
        dispatcher = dispatcher_factory(make_estimator(error=RuntimeError("boom")))

        with caplog.at_level(logging.WARNING, logger="kitchen_costing"):
            outcome = dispatcher._run(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))

        assert outcome is EnrichmentOutcome.ESTIMATOR_FAILED
        record = next(r for r in caplog.records if getattr(r, "outcome", None) == "estimator_failed")
        assert record.unexpected is True

    def test_slow_estimator_times_out(self, record_store, stored_ids, make_estimator, dispatcher_factory):
        dispatcher = dispatcher_factory(make_estimator(delay=0.5), estimator_timeout=0.05)

        outcome = dispatcher._run(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))

        assert outcome is EnrichmentOutcome.TIMED_OUT
        assert record_store.updates == []

    def test_update_failure(self, make_record_store, stub_estimator, dispatcher_factory):
        store = make_record_store(fail_update=True)
        record_id = store.create_all([draft("Soup")])[0]
        dispatcher = dispatcher_factory(stub_estimator, store=store)

        outcome = dispatcher._run(EnrichmentJob(record_id, "Soup", "500g Tomato"))

        assert outcome is EnrichmentOutcome.UPDATE_FAILED
        assert store.records[record_id]["nutritional_info"] is None

    def test_missing_record(self, stub_estimator, dispatcher_factory):
        dispatcher = dispatcher_factory(stub_estimator)
        outcome = dispatcher._run(EnrichmentJob(999, "Ghost", "1g Salt"))
        assert outcome is EnrichmentOutcome.UPDATE_FAILED

    def test_empty_summary_is_skipped(self, stored_ids, stub_estimator, dispatcher_factory):
        dispatcher = dispatcher_factory(stub_estimator)
        outcome = dispatcher._run(EnrichmentJob(stored_ids[0], "Soup", ""))
        assert outcome is EnrichmentOutcome.SKIPPED
        assert stub_estimator.calls == []

    def test_running_job_after_shutdown_is_skipped(self, stored_ids, stub_estimator, dispatcher_factory, caplog):
        dispatcher = dispatcher_factory(stub_estimator)
        dispatcher.shutdown(wait=False)

        with caplog.at_level(logging.DEBUG, logger="kitchen_costing"):
            outcome = dispatcher._run(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))

        assert outcome is EnrichmentOutcome.SKIPPED
        assert stub_estimator.calls == []
        outcomes = [getattr(r, "outcome", None) for r in caplog.records]
        assert "skipped" in outcomes
        assert "estimator_failed" not in outcomes

    def test_shutdown_with_wait_finishes_running_jobs(self, record_store, stored_ids, make_estimator):
        dispatcher = EnrichmentDispatcher(make_estimator(delay=0.1), record_store)

        dispatcher.fire(EnrichmentJob(stored_ids[0], "Soup", "500g Tomato"))
        dispatcher.shutdown(wait=True)

        assert record_store.records[stored_ids[0]]["nutritional_info"]["calories"] == 250.0


class TestGlobalDispatcher:
    def test_none_without_estimator(self):
        assert get_enrichment_dispatcher() is None

    def test_created_from_config(self, monkeypatch):
        monkeypatch.setenv("NUTRITION_API_URL", "https://api.example.com/v1")
        monkeypatch.setenv("NUTRITION_TIMEOUT_SECONDS", "12")

        dispatcher = get_enrichment_dispatcher()

        assert dispatcher is not None
        assert dispatcher.estimator_timeout == 12.0
        assert get_enrichment_dispatcher() is dispatcher

        shutdown_enrichment_dispatcher()
        assert get_enrichment_dispatcher() is not dispatcher
