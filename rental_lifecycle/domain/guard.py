"""Idempotency guard - drops events whose effect is already recorded on the entity"""

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


def filter_lease_events(lease: LeaseContract, events: Sequence[LeaseEvent]) -> List[LeaseEvent]:
    """
    Keep only lease events that have not been applied yet.

    Must be called with the same snapshot whose version is used for the
    conditional write, otherwise two overlapping runs could both pass.
    """
    if lease.is_terminal:
        return []

    surviving: List[LeaseEvent] = []
    for event in events:
        if isinstance(event, Warn) and event.threshold in lease.sent_warning_thresholds:
            continue
        surviving.append(event)

    # Expiry makes any warning moot
    if any(isinstance(event, Expire) for event in surviving):
        return [Expire()]
    return surviving


def filter_application_events(
    application: RentalApplication,
    events: Sequence[ApplicationEvent],
) -> List[ApplicationEvent]:
    """Keep only application events that are still applicable to a pending application"""
    if not application.is_pending:
        return []

    surviving: List[ApplicationEvent] = []
    for event in events:
        if isinstance(event, MarkOverdue) and application.overdue:
            continue
        if isinstance(event, AutoDecide) and application.auto_processed:
            continue
        surviving.append(event)
    return surviving
