"""Entity statuses and their closed transition tables"""

from enum import Enum
from typing import Dict, FrozenSet, TypeVar

from rental_lifecycle.domain.exceptions import IllegalTransitionError


class LeaseStatus(str, Enum):
    ACTIVE = "active"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class PropertyStatus(str, Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"


class AutoProcessingPolicy(str, Enum):
    DISABLED = "disabled"
    AUTO_APPROVE = "auto_approve"
    AUTO_REJECT = "auto_reject"


class DecisionActor(str, Enum):
    HUMAN = "human"
    SYSTEM = "system"


LEASE_TRANSITIONS: Dict[LeaseStatus, FrozenSet[LeaseStatus]] = {
    LeaseStatus.ACTIVE: frozenset({LeaseStatus.EXPIRING, LeaseStatus.EXPIRED, LeaseStatus.TERMINATED}),
    LeaseStatus.EXPIRING: frozenset({LeaseStatus.EXPIRED, LeaseStatus.TERMINATED}),
    LeaseStatus.EXPIRED: frozenset(),
    LeaseStatus.TERMINATED: frozenset(),
}

APPLICATION_TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset(
        {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN}
    ),
    ApplicationStatus.APPROVED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.WITHDRAWN: frozenset(),
}

PROPERTY_TRANSITIONS: Dict[PropertyStatus, FrozenSet[PropertyStatus]] = {
    PropertyStatus.AVAILABLE: frozenset({PropertyStatus.RENTED, PropertyStatus.MAINTENANCE}),
    PropertyStatus.RENTED: frozenset({PropertyStatus.AVAILABLE, PropertyStatus.MAINTENANCE}),
    PropertyStatus.MAINTENANCE: frozenset({PropertyStatus.AVAILABLE}),
}

AUTO_DECISIONS: Dict[AutoProcessingPolicy, ApplicationStatus] = {
    AutoProcessingPolicy.AUTO_APPROVE: ApplicationStatus.APPROVED,
    AutoProcessingPolicy.AUTO_REJECT: ApplicationStatus.REJECTED,
}

S = TypeVar("S", LeaseStatus, ApplicationStatus, PropertyStatus)


def ensure_transition(table: Dict[S, FrozenSet[S]], current: S, target: S) -> S:
    """Return target if current -> target is allowed, raise IllegalTransitionError otherwise"""
    if target not in table[current]:
        raise IllegalTransitionError(f"{type(current).__name__}: {current.value} -> {target.value} is not allowed")
    return target


def is_terminal(table: Dict[S, FrozenSet[S]], status: S) -> bool:
    return not table[status]
