"""
Enrichment Dispatcher - background nutrition enrichment for committed recipes.

After a batch commit, one EnrichmentJob per new recipe is handed to
fire(), which returns immediately. A worker pool asks the estimator for a
nutrition estimate and writes it onto that single recipe. Failures,
timeouts and failed updates are logged and dropped: the recipe simply
stays without nutritional_info. There is no retry, no ordering between
jobs, and nothing is reported back to the import caller.

Jobs must only be fired for ids returned by a completed commit, so the
single-recipe update can never run ahead of the batch write.

Example usage:
    from src.services.enrichment_dispatcher import EnrichmentDispatcher, EnrichmentJob

    dispatcher = EnrichmentDispatcher(estimator, record_store)
    dispatcher.fire(EnrichmentJob(42, "Tomato Soup", "500g Tomato; 1unit Onion"))
    # ... later, on shutdown
    dispatcher.shutdown()
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

from src.services.exceptions import EstimatorError
from src.services.logging_utils import get_service_logger, log_operation
from src.services.nutrition_estimator import Estimator, get_default_estimator
from src.services.stores import RecordStore, SqlRecordStore
from src.utils.config import get_config
from src.utils.constants import DEFAULT_ENRICHMENT_WORKERS, DEFAULT_ESTIMATOR_TIMEOUT_SECONDS

logger = get_service_logger(__name__)


@dataclass(frozen=True)
class EnrichmentJob:
    """Nutrition enrichment request for one committed recipe."""

    record_id: int
    recipe_name: str
    ingredient_summary: str


class EnrichmentOutcome(str, Enum):
    """How a single enrichment job ended."""

    ENRICHED = "enriched"
    ESTIMATOR_FAILED = "estimator_failed"
    TIMED_OUT = "timed_out"
    UPDATE_FAILED = "update_failed"
    SKIPPED = "skipped"


class EnrichmentDispatcher:
    """
    Fire-and-forget worker pool for nutrition enrichment.

    Attributes:
        estimator_timeout: Seconds a single estimator call may take before
            the job is dropped as timed out
    """

    def __init__(
        self,
        estimator: Estimator,
        record_store: RecordStore,
        max_workers: int = DEFAULT_ENRICHMENT_WORKERS,
        estimator_timeout: float = DEFAULT_ESTIMATOR_TIMEOUT_SECONDS,
    ):
        self._estimator = estimator
        self._record_store = record_store
        self.estimator_timeout = estimator_timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="enrichment"
        )
        # Estimator calls run on their own pool so a hung call can be abandoned
        self._estimator_executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="estimator"
        )
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False
        self._estimates_stopped = False

    def fire(self, job: EnrichmentJob) -> None:
        """
        Schedule enrichment for one recipe and return immediately.

        Never raises; a job that cannot be scheduled is logged and dropped.
        """
        with self._lock:
            if self._closed:
                log_operation(
                    logger,
                    operation="enrich_recipe",
                    outcome="dropped_dispatcher_closed",
                    level=logging.WARNING,
                    record_id=job.record_id,
                )
                return
            future = self._executor.submit(self._run, job)
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every job fired so far has finished.

        Intended for tests and orderly shutdown; the import path never waits.

        Returns:
            True if all jobs finished within the timeout
        """
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        """
        Stop accepting jobs and release the worker threads.

        Args:
            wait: If True, block until running jobs finish
            cancel_pending: If True, drop jobs that have not started yet
        """
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=cancel_pending)
        with self._lock:
            self._estimates_stopped = True
            self._estimator_executor.shutdown(wait=False)
        log_operation(
            logger,
            operation="shutdown_dispatcher",
            outcome="stopped",
            waited=wait,
            cancelled_pending=cancel_pending,
        )

    def _run(self, job: EnrichmentJob) -> EnrichmentOutcome:
        """Run one job; every failure ends here, logged, never raised."""
        if not job.ingredient_summary:
            log_operation(
                logger,
                operation="enrich_recipe",
                outcome=EnrichmentOutcome.SKIPPED.value,
                level=logging.DEBUG,
                record_id=job.record_id,
            )
            return EnrichmentOutcome.SKIPPED

        # Jobs still running after shutdown(wait=False) must not reach the stopped pool
        with self._lock:
            if self._estimates_stopped:
                estimate = None
            else:
                estimate = self._estimator_executor.submit(
                    self._estimator.estimate, job.recipe_name, job.ingredient_summary
                )
        if estimate is None:
            log_operation(
                logger,
                operation="enrich_recipe",
                outcome=EnrichmentOutcome.SKIPPED.value,
                level=logging.DEBUG,
                record_id=job.record_id,
                reason="dispatcher_shutdown",
            )
            return EnrichmentOutcome.SKIPPED

        try:
            result = estimate.result(timeout=self.estimator_timeout)
        except FutureTimeoutError:
            estimate.cancel()
            log_operation(
                logger,
                operation="enrich_recipe",
                outcome=EnrichmentOutcome.TIMED_OUT.value,
                level=logging.WARNING,
                record_id=job.record_id,
                recipe_name=job.recipe_name,
                timeout=self.estimator_timeout,
            )
            return EnrichmentOutcome.TIMED_OUT
        except Exception as e:
            log_operation(
                logger,
                operation="enrich_recipe",
                outcome=EnrichmentOutcome.ESTIMATOR_FAILED.value,
                level=logging.WARNING,
                record_id=job.record_id,
                recipe_name=job.recipe_name,
                error=str(e),
                unexpected=not isinstance(e, EstimatorError),
            )
            return EnrichmentOutcome.ESTIMATOR_FAILED

        try:
            self._record_store.update_one(job.record_id, result.to_dict())
        except Exception as e:
            log_operation(
                logger,
                operation="enrich_recipe",
                outcome=EnrichmentOutcome.UPDATE_FAILED.value,
                level=logging.WARNING,
                record_id=job.record_id,
                recipe_name=job.recipe_name,
                error=str(e),
            )
            return EnrichmentOutcome.UPDATE_FAILED

        log_operation(
            logger,
            operation="enrich_recipe",
            outcome=EnrichmentOutcome.ENRICHED.value,
            record_id=job.record_id,
            recipe_name=job.recipe_name,
        )
        return EnrichmentOutcome.ENRICHED


# Process-wide dispatcher, created on first use
_dispatcher: Optional[EnrichmentDispatcher] = None
_dispatcher_lock = threading.Lock()


def get_enrichment_dispatcher() -> Optional[EnrichmentDispatcher]:
    """
    Get the global dispatcher, building it from configuration on first use.

    Returns:
        EnrichmentDispatcher, or None when no estimator is configured
    """
    global _dispatcher

    with _dispatcher_lock:
        if _dispatcher is None:
            estimator = get_default_estimator()
            if estimator is None:
                return None
            config = get_config()
            _dispatcher = EnrichmentDispatcher(
                estimator,
                SqlRecordStore(),
                max_workers=config.enrichment_workers,
                estimator_timeout=config.nutrition_timeout,
            )
        return _dispatcher


def shutdown_enrichment_dispatcher(wait: bool = True, cancel_pending: bool = False) -> None:
    """Shut down and forget the global dispatcher, if one was created."""
    global _dispatcher

    with _dispatcher_lock:
        dispatcher, _dispatcher = _dispatcher, None
    if dispatcher is not None:
        dispatcher.shutdown(wait=wait, cancel_pending=cancel_pending)
