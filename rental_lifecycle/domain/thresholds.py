"""Threshold evaluation - decides which lifecycle events are due for an entity"""

from datetime import datetime
from typing import List, Sequence

from rental_lifecycle.domain.models import (
    ApplicationEvent,
    AutoDecide,
    Expire,
    LeaseContract,
    LeaseEvent,
    MarkOverdue,
    RentalApplication,
    Warn,
)
from rental_lifecycle.domain.policy import ApplicationRules
from rental_lifecycle.domain.states import AutoProcessingPolicy
from rental_lifecycle.utils.date_utils import as_utc, days_until


def evaluate_lease(lease: LeaseContract, schedule: Sequence[int], now: datetime) -> List[LeaseEvent]:
    """
    Return the events due for a lease at `now`.

    Rules:
    - days_remaining <= 0: the lease expires, and nothing else is reported
      (an expired lease never also gets a stale warning in the same run)
    - otherwise every threshold t with days_remaining <= t is reported, not
      only an exact match, so a run missed on the day a threshold was crossed
      still fires it later

    Already-sent thresholds are not filtered here; see guard.filter_lease_events.

    Example:
        schedule [60, 30, 15, 7, 1], days_remaining 5
        → [Warn(60), Warn(30), Warn(15), Warn(7)]
    """
    remaining = days_until(lease.end_date, now)
    if remaining <= 0:
        return [Expire()]

    return [Warn(t) for t in sorted(schedule, reverse=True) if remaining <= t]


def evaluate_application(
    application: RentalApplication,
    rules: ApplicationRules,
    now: datetime,
) -> List[ApplicationEvent]:
    """
    Return the events due for a pending application at `now`.

    - age >= sla and not yet overdue → MarkOverdue (reaching the deadline counts)
    - age >= sla + grace and an auto-processing policy is set → AutoDecide(policy)

    Both can be returned together when a run observes an application for the
    first time after the grace period has already elapsed.
    """
    if not application.is_pending:
        return []

    age = as_utc(now) - as_utc(application.submitted_at)
    events: List[ApplicationEvent] = []

    if age >= rules.sla and not application.overdue:
        events.append(MarkOverdue())

    if age >= rules.sla + rules.grace and rules.policy != AutoProcessingPolicy.DISABLED:
        events.append(AutoDecide(rules.policy))

    return events
