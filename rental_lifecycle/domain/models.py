"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

from rental_lifecycle.domain.exceptions import IllegalTransitionError
from rental_lifecycle.domain.states import (
    APPLICATION_TRANSITIONS,
    AUTO_DECISIONS,
    LEASE_TRANSITIONS,
    PROPERTY_TRANSITIONS,
    ApplicationStatus,
    AutoProcessingPolicy,
    DecisionActor,
    LeaseStatus,
    PropertyStatus,
    ensure_transition,
    is_terminal,
)


@dataclass(frozen=True)
class LeaseContract:
    """Snapshot of a lease contract as read from the entity store"""

    id: uuid.UUID
    contract_number: str
    property_id: uuid.UUID
    tenant_id: str
    landlord_id: str
    start_date: datetime
    end_date: datetime
    status: LeaseStatus
    sent_warning_thresholds: FrozenSet[int] = frozenset()
    version: int = 1

    @property
    def is_terminal(self) -> bool:
        return is_terminal(LEASE_TRANSITIONS, self.status)

    def expire(self) -> "LeaseContract":
        return replace(self, status=ensure_transition(LEASE_TRANSITIONS, self.status, LeaseStatus.EXPIRED))

    def record_warnings(self, thresholds: Iterable[int]) -> "LeaseContract":
        """Add sent thresholds; the first warning moves an active lease to expiring"""
        if self.is_terminal:
            raise IllegalTransitionError(f"Cannot record warnings on {self.status.value} lease {self.id}")
        status = self.status
        if status == LeaseStatus.ACTIVE:
            status = ensure_transition(LEASE_TRANSITIONS, status, LeaseStatus.EXPIRING)
        return replace(
            self,
            status=status,
            sent_warning_thresholds=self.sent_warning_thresholds | frozenset(thresholds),
        )


@dataclass(frozen=True)
class RentalApplication:
    """Snapshot of a rental application; SLA fields override the category defaults when set"""

    id: uuid.UUID
    property_id: uuid.UUID
    applicant_id: str
    submitted_at: datetime
    status: ApplicationStatus
    category: str = "default"
    landlord_id: Optional[str] = None
    sla_deadline: Optional[timedelta] = None
    grace_duration: Optional[timedelta] = None
    auto_processing_policy: Optional[AutoProcessingPolicy] = None
    overdue: bool = False
    auto_processed: bool = False
    decision_actor: Optional[DecisionActor] = None
    version: int = 1

    def __post_init__(self):
        if self.auto_processed:
            if self.decision_actor != DecisionActor.SYSTEM:
                raise IllegalTransitionError(f"Application {self.id}: auto-processed requires a system decision")
            if self.status not in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED):
                raise IllegalTransitionError(f"Application {self.id}: auto-processed requires a decided status")

    @property
    def is_pending(self) -> bool:
        return self.status == ApplicationStatus.PENDING

    def mark_overdue(self) -> "RentalApplication":
        if not self.is_pending:
            raise IllegalTransitionError(f"Application {self.id}: overdue can only be set while pending")
        return replace(self, overdue=True)

    def auto_decide(self, policy: AutoProcessingPolicy) -> "RentalApplication":
        if policy not in AUTO_DECISIONS:
            raise IllegalTransitionError(f"Application {self.id}: policy {policy.value} makes no decision")
        status = ensure_transition(APPLICATION_TRANSITIONS, self.status, AUTO_DECISIONS[policy])
        return replace(self, status=status, auto_processed=True, decision_actor=DecisionActor.SYSTEM)


@dataclass(frozen=True)
class Property:
    """Property snapshot; only its status is ever touched by lifecycle automation"""

    id: uuid.UUID
    owner_id: str
    status: PropertyStatus
    title: str = ""
    version: int = 1

    def release(self) -> "Property":
        return replace(self, status=ensure_transition(PROPERTY_TRANSITIONS, self.status, PropertyStatus.AVAILABLE))


# Lifecycle events produced by the evaluator


@dataclass(frozen=True)
class Expire:
    kind: str = field(default="expire", init=False)


@dataclass(frozen=True)
class Warn:
    threshold: int
    kind: str = field(default="warn", init=False)


@dataclass(frozen=True)
class MarkOverdue:
    kind: str = field(default="mark_overdue", init=False)


@dataclass(frozen=True)
class AutoDecide:
    policy: AutoProcessingPolicy
    kind: str = field(default="auto_decide", init=False)


LeaseEvent = Union[Expire, Warn]
ApplicationEvent = Union[MarkOverdue, AutoDecide]
LifecycleEvent = Union[Expire, Warn, MarkOverdue, AutoDecide]


@dataclass(frozen=True)
class NotificationRecord:
    """Notification handed to the notification service, immutable once built"""

    recipient_id: str
    category: str
    title: str
    message: str
    dedupe_key: str
    action_url: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RunSummary:
    """Aggregate outcome of one automation run"""

    success: bool
    timestamp: datetime
    scanned: int = 0
    expired: int = 0
    warnings_sent: int = 0
    overdue_marked: int = 0
    auto_processed: int = 0
    notifications_dispatched: int = 0
    conflicts: int = 0
    errors: int = 0
    error: Optional[str] = None
