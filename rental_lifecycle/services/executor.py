"""Transition executor - commits surviving lifecycle events with conditional writes"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence

from rental_lifecycle.domain import notifications
from rental_lifecycle.domain.exceptions import PreconditionFailure
from rental_lifecycle.domain.models import (
    ApplicationEvent,
    AutoDecide,
    Expire,
    LeaseContract,
    LeaseEvent,
    LifecycleEvent,
    MarkOverdue,
    NotificationRecord,
    RentalApplication,
    Warn,
)
from rental_lifecycle.domain.ports import EntityStore
from rental_lifecycle.domain.states import PropertyStatus
from rental_lifecycle.infrastructure.observability.metrics import conflict_counter
from rental_lifecycle.utils.date_utils import days_until

logger = logging.getLogger(__name__)


@dataclass
class ExecutionOutcome:
    """What was committed for one entity and which notifications it produced"""

    entity_type: str
    entity_id: object
    applied: List[LifecycleEvent] = field(default_factory=list)
    notifications: List[NotificationRecord] = field(default_factory=list)
    conflict: bool = False

    def count(self, kind: str) -> int:
        return sum(1 for event in self.applied if event.kind == kind)


class TransitionExecutor:
    """
    Applies guarded events to one entity inside a single store transaction.

    The write is conditional on the version of the snapshot the guard looked
    at. Losing that race means another run already applied the change, so the
    entity is left alone and no notifications are produced.
    """

    def __init__(self, store: EntityStore, site_url: str):
        self.store = store
        self.site_url = site_url

    def apply_lease_events(
        self,
        lease: LeaseContract,
        events: Sequence[LeaseEvent],
        now: datetime,
    ) -> ExecutionOutcome:
        """
        Expire the lease (releasing its property) or record newly crossed warnings.

        All crossed thresholds are recorded in one write, but only the most
        urgent one is announced: a lease first seen 5 days out gets a single
        warning saying 5 days, not one per skipped threshold.
        """
        outcome = ExecutionOutcome("lease", lease.id)
        if not events:
            return outcome

        try:
            with self.store.transaction():
                if any(isinstance(event, Expire) for event in events):
                    expired = lease.expire()
                    self.store.conditional_update_lease(expired, lease.version)
                    self._release_property(lease)
                    outcome.applied = [Expire()]
                    outcome.notifications = notifications.lease_expired(expired, self.site_url)
                else:
                    thresholds = [event.threshold for event in events if isinstance(event, Warn)]
                    warned = lease.record_warnings(thresholds)
                    self.store.conditional_update_lease(warned, lease.version)
                    outcome.applied = [Warn(t) for t in thresholds]
                    outcome.notifications = notifications.lease_warning(
                        warned, min(thresholds), days_until(lease.end_date, now), self.site_url
                    )
        except PreconditionFailure as e:
            return self._conflict(outcome, e)

        return outcome

    def apply_application_events(
        self,
        application: RentalApplication,
        events: Sequence[ApplicationEvent],
    ) -> ExecutionOutcome:
        outcome = ExecutionOutcome("application", application.id)
        if not events:
            return outcome

        updated = application
        for event in events:
            if isinstance(event, MarkOverdue):
                updated = updated.mark_overdue()
            elif isinstance(event, AutoDecide):
                updated = updated.auto_decide(event.policy)

        try:
            with self.store.transaction():
                self.store.conditional_update_application(updated, application.version)
        except PreconditionFailure as e:
            return self._conflict(outcome, e)

        outcome.applied = list(events)
        if updated.auto_processed:
            # The applicant hears the decision; an overdue reminder to the landlord is moot by now
            outcome.notifications = [notifications.application_decision(updated, self.site_url)]
        else:
            reminder = notifications.application_overdue(updated, self.site_url)
            outcome.notifications = [reminder] if reminder else []
        return outcome

    def _release_property(self, lease: LeaseContract) -> None:
        """Cascade: make the leased property available again, at most once"""
        prop = self.store.get_property(lease.property_id)
        if prop is None:
            logger.warning(
                "Expired lease references a missing property",
                extra={"lease_id": str(lease.id), "property_id": str(lease.property_id)},
            )
            return
        if prop.status == PropertyStatus.AVAILABLE:
            return
        self.store.conditional_update_property(prop.release(), prop.version)

    def _conflict(self, outcome: ExecutionOutcome, error: PreconditionFailure) -> ExecutionOutcome:
        conflict_counter.labels(entity_type=error.entity_type).inc()
        logger.info(
            "Concurrent update detected, skipping",
            extra={
                "entity_type": outcome.entity_type,
                "entity_id": str(outcome.entity_id),
                "step": "conditional_write",
                "detail": str(error),
            },
        )
        outcome.conflict = True
        outcome.applied = []
        outcome.notifications = []
        return outcome
