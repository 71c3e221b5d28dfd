"""Batch orchestrator - one full lifecycle scan over leases and applications"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable

from rental_lifecycle.domain.exceptions import LoadError
from rental_lifecycle.domain.guard import filter_application_events, filter_lease_events
from rental_lifecycle.domain.models import LeaseContract, RentalApplication, RunSummary
from rental_lifecycle.domain.policy import LifecyclePolicy
from rental_lifecycle.domain.ports import EntityStore
from rental_lifecycle.domain.thresholds import evaluate_application, evaluate_lease
from rental_lifecycle.infrastructure.observability.logging import log_run_summary
from rental_lifecycle.infrastructure.observability.metrics import entity_error_counter, record_run
from rental_lifecycle.services.dispatcher import NotificationDispatcher
from rental_lifecycle.services.executor import ExecutionOutcome, TransitionExecutor
from rental_lifecycle.utils.date_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Counters for a single run; nothing here outlives the run"""

    scanned: int = 0
    expired: int = 0
    warnings_sent: int = 0
    overdue_marked: int = 0
    auto_processed: int = 0
    notifications_dispatched: int = 0
    conflicts: int = 0
    errors: int = 0

    def record_outcome(self, outcome: ExecutionOutcome) -> None:
        if outcome.conflict:
            self.conflicts += 1
            return
        self.expired += outcome.count("expire")
        self.warnings_sent += outcome.count("warn")
        self.overdue_marked += outcome.count("mark_overdue")
        self.auto_processed += outcome.count("auto_decide")

    def summarize(self, timestamp: datetime) -> RunSummary:
        return RunSummary(
            success=True,
            timestamp=timestamp,
            scanned=self.scanned,
            expired=self.expired,
            warnings_sent=self.warnings_sent,
            overdue_marked=self.overdue_marked,
            auto_processed=self.auto_processed,
            notifications_dispatched=self.notifications_dispatched,
            conflicts=self.conflicts,
            errors=self.errors,
        )


class LifecycleOrchestrator:
    """
    Runs LOAD → PROCESS each candidate → AGGREGATE → REPORT.

    Only a failed load aborts the run. Every entity is processed under its
    own timeout and any failure is counted and logged without touching the
    others. Safety against overlapping runs comes from the conditional writes
    in the executor, not from any lock here.
    """

    def __init__(
        self,
        store: EntityStore,
        executor: TransitionExecutor,
        dispatcher: NotificationDispatcher,
        policy: LifecyclePolicy,
        clock: Callable[[], datetime] = utcnow,
        entity_timeout_seconds: float = 30.0,
        max_concurrency: int = 1,
    ):
        self.store = store
        self.executor = executor
        self.dispatcher = dispatcher
        self.policy = policy
        self.clock = clock
        self.entity_timeout_seconds = entity_timeout_seconds
        self.max_concurrency = max_concurrency

    async def run(self) -> RunSummary:
        run_id = str(uuid.uuid4())
        start_time = time.time()
        now = self.clock()

        # LOAD
        try:
            leases = self.store.list_active_leases()
            applications = self.store.list_pending_applications()
        except LoadError as e:
            logger.error(f"Lifecycle run aborted: {e}", extra={"run_id": run_id, "step": "load"})
            summary = RunSummary(success=False, timestamp=now, error=str(e))
            self._report(run_id, summary, start_time)
            return summary

        # PROCESS
        context = RunContext(scanned=len(leases) + len(applications))
        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = [
            self._isolated(
                semaphore,
                context,
                "lease",
                lease.id,
                lambda lease=lease: self._process_lease(lease, now, context),
            )
            for lease in leases
        ] + [
            self._isolated(
                semaphore,
                context,
                "application",
                application.id,
                lambda application=application: self._process_application(application, now, context),
            )
            for application in applications
        ]
        await asyncio.gather(*tasks)

        # AGGREGATE + REPORT
        summary = context.summarize(now)
        self._report(run_id, summary, start_time)
        return summary

    async def _process_lease(self, lease: LeaseContract, now: datetime, context: RunContext) -> None:
        events = filter_lease_events(lease, evaluate_lease(lease, self.policy.warning_schedule, now))
        if not events:
            return
        outcome = self.executor.apply_lease_events(lease, events, now)
        await self._finish(outcome, context)

    async def _process_application(self, application: RentalApplication, now: datetime, context: RunContext) -> None:
        rules = self.policy.rules_for(application)
        events = filter_application_events(application, evaluate_application(application, rules, now))
        if not events:
            return
        outcome = self.executor.apply_application_events(application, events)
        await self._finish(outcome, context)

    async def _finish(self, outcome: ExecutionOutcome, context: RunContext) -> None:
        """Count the committed transition first, then dispatch; delivery failures never undo it"""
        context.record_outcome(outcome)
        if not outcome.notifications:
            return
        report = await self.dispatcher.dispatch_all(outcome.notifications)
        context.notifications_dispatched += report.delivered
        context.errors += report.failed

    async def _isolated(
        self,
        semaphore: asyncio.Semaphore,
        context: RunContext,
        entity_type: str,
        entity_id,
        process: Callable[[], Awaitable[None]],
    ) -> None:
        async with semaphore:
            try:
                await asyncio.wait_for(process(), timeout=self.entity_timeout_seconds)
            except asyncio.TimeoutError:
                self._entity_failed(context, entity_type, entity_id, f"timed out after {self.entity_timeout_seconds}s")
            except Exception as e:
                self._entity_failed(context, entity_type, entity_id, str(e), exc_info=True)

    def _entity_failed(self, context: RunContext, entity_type: str, entity_id, reason: str, exc_info=False) -> None:
        context.errors += 1
        entity_error_counter.labels(entity_type=entity_type).inc()
        logger.error(
            f"Failed to process {entity_type}: {reason}",
            extra={"entity_type": entity_type, "entity_id": str(entity_id), "step": "process"},
            exc_info=exc_info,
        )

    def _report(self, run_id: str, summary: RunSummary, start_time: float) -> None:
        duration = time.time() - start_time
        record_run(summary, duration)
        log_run_summary(run_id, summary, duration * 1000)
