"""Notification records emitted by lifecycle transitions"""

from datetime import datetime
from typing import List, Optional

from rental_lifecycle.domain.models import LeaseContract, NotificationRecord, RentalApplication
from rental_lifecycle.domain.states import ApplicationStatus
from rental_lifecycle.utils.date_utils import as_utc

LEASE_EXPIRING_SOON = "lease_expiring_soon"
LEASE_EXPIRED = "lease_expired"
APPLICATION_OVERDUE = "application_overdue"
APPLICATION_ACCEPTED = "application_accepted"
APPLICATION_REJECTED = "application_rejected"


def dedupe_key(entity_id, event_type: str, threshold_or_reason) -> str:
    """Stable key downstream consumers use to drop duplicate deliveries"""
    return f"{entity_id}:{event_type}:{threshold_or_reason}"


def _format_date(value: datetime) -> str:
    return as_utc(value).date().isoformat()


def lease_warning(
    lease: LeaseContract,
    threshold: int,
    days_remaining: int,
    site_url: str,
) -> List[NotificationRecord]:
    """
    Expiry warning for both parties.

    The title and payload carry the real number of days left; the threshold
    only identifies the warning, so a late run still reads correctly.
    """
    return [
        NotificationRecord(
            recipient_id=recipient_id,
            category=LEASE_EXPIRING_SOON,
            title=f"Lease expires in {days_remaining} day(s)",
            message=(
                f"Contract {lease.contract_number} ends on {_format_date(lease.end_date)}. "
                "Consider renewing it."
            ),
            action_url=f"{site_url}/contract/{lease.id}",
            dedupe_key=dedupe_key(lease.id, LEASE_EXPIRING_SOON, f"{threshold}:{role}"),
            payload={
                "lease_id": str(lease.id),
                "contract_number": lease.contract_number,
                "days_remaining": days_remaining,
                "threshold": threshold,
                "end_date": _format_date(lease.end_date),
            },
        )
        for role, recipient_id in (("tenant", lease.tenant_id), ("landlord", lease.landlord_id))
    ]


def lease_expired(lease: LeaseContract, site_url: str) -> List[NotificationRecord]:
    """Both parties are told; the recipient role is the dedupe reason"""
    return [
        NotificationRecord(
            recipient_id=recipient_id,
            category=LEASE_EXPIRED,
            title="Lease expired",
            message=f"Contract {lease.contract_number} has expired.",
            action_url=f"{site_url}/contract/{lease.id}",
            dedupe_key=dedupe_key(lease.id, LEASE_EXPIRED, role),
            payload={
                "lease_id": str(lease.id),
                "contract_number": lease.contract_number,
                "property_id": str(lease.property_id),
            },
        )
        for role, recipient_id in (("tenant", lease.tenant_id), ("landlord", lease.landlord_id))
    ]


def application_overdue(application: RentalApplication, site_url: str) -> Optional[NotificationRecord]:
    if not application.landlord_id:
        return None
    return NotificationRecord(
        recipient_id=application.landlord_id,
        category=APPLICATION_OVERDUE,
        title="Application awaiting your review",
        message="A rental application has passed its review deadline.",
        action_url=f"{site_url}/dashboard/applications",
        dedupe_key=dedupe_key(application.id, APPLICATION_OVERDUE, "sla"),
        payload={"application_id": str(application.id), "property_id": str(application.property_id)},
    )


def application_decision(application: RentalApplication, site_url: str) -> NotificationRecord:
    accepted = application.status == ApplicationStatus.APPROVED
    category = APPLICATION_ACCEPTED if accepted else APPLICATION_REJECTED
    return NotificationRecord(
        recipient_id=application.applicant_id,
        category=category,
        title="Application accepted" if accepted else "Application not selected",
        message=(
            "Your rental application has been accepted."
            if accepted
            else "Your rental application was not selected."
        ),
        action_url=f"{site_url}/applications/{application.id}",
        dedupe_key=dedupe_key(application.id, category, "auto"),
        payload={
            "application_id": str(application.id),
            "property_id": str(application.property_id),
            "decision": application.status.value,
            "decision_actor": application.decision_actor.value if application.decision_actor else None,
        },
    )
