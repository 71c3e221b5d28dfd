"""Data access layer for lifecycle entities"""

import uuid
from contextlib import contextmanager
from datetime import timedelta
from typing import Iterator, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rental_lifecycle.domain.exceptions import EntityWriteError, LoadError, PreconditionFailure
from rental_lifecycle.domain.models import LeaseContract, NotificationRecord, Property, RentalApplication
from rental_lifecycle.domain.states import (
    ApplicationStatus,
    AutoProcessingPolicy,
    DecisionActor,
    LeaseStatus,
    PropertyStatus,
)
from rental_lifecycle.infrastructure.database.models import (
    LeaseContractRow,
    NotificationRow,
    PropertyRow,
    RentalApplicationRow,
)
from rental_lifecycle.utils.date_utils import as_utc

ACTIVE_LEASE_STATUSES = (LeaseStatus.ACTIVE.value, LeaseStatus.EXPIRING.value)


def _hours(value: Optional[float]) -> Optional[timedelta]:
    return timedelta(hours=value) if value is not None else None


def lease_from_row(row: LeaseContractRow) -> LeaseContract:
    return LeaseContract(
        id=row.id,
        contract_number=row.contract_number,
        property_id=row.property_id,
        tenant_id=row.tenant_id,
        landlord_id=row.landlord_id,
        start_date=as_utc(row.start_date),
        end_date=as_utc(row.end_date),
        status=LeaseStatus(row.status),
        sent_warning_thresholds=frozenset(row.sent_warning_thresholds or ()),
        version=row.version,
    )


def application_from_row(row: RentalApplicationRow) -> RentalApplication:
    return RentalApplication(
        id=row.id,
        property_id=row.property_id,
        applicant_id=row.applicant_id,
        landlord_id=row.property.owner_id if row.property is not None else None,
        category=row.category,
        submitted_at=as_utc(row.submitted_at),
        status=ApplicationStatus(row.status),
        sla_deadline=_hours(row.sla_hours),
        grace_duration=_hours(row.grace_hours),
        auto_processing_policy=(
            AutoProcessingPolicy(row.auto_processing_policy) if row.auto_processing_policy else None
        ),
        overdue=row.overdue,
        auto_processed=row.auto_processed,
        decision_actor=DecisionActor(row.decision_actor) if row.decision_actor else None,
        version=row.version,
    )


def property_from_row(row: PropertyRow) -> Property:
    return Property(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        status=PropertyStatus(row.status),
        version=row.version,
    )


class SqlEntityStore:
    """
    Entity store backed by the application database.

    Every write is conditional on the version read by the caller and bumps
    it, so two overlapping runs cannot both apply the same transition.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit on success, roll back on any exception"""
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def list_active_leases(self) -> List[LeaseContract]:
        try:
            rows = (
                self.db.query(LeaseContractRow)
                .filter(LeaseContractRow.status.in_(ACTIVE_LEASE_STATUSES))
                .order_by(LeaseContractRow.end_date.asc())
                .all()
            )
            return [lease_from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise LoadError(f"Could not list active leases: {e}") from e

    def list_pending_applications(self) -> List[RentalApplication]:
        try:
            rows = (
                self.db.query(RentalApplicationRow)
                .filter(RentalApplicationRow.status == ApplicationStatus.PENDING.value)
                .order_by(RentalApplicationRow.submitted_at.asc())
                .all()
            )
            return [application_from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise LoadError(f"Could not list pending applications: {e}") from e

    def get_property(self, property_id: uuid.UUID) -> Optional[Property]:
        try:
            row = self.db.query(PropertyRow).filter(PropertyRow.id == property_id).first()
        except SQLAlchemyError as e:
            raise EntityWriteError(property_id, f"Could not read property: {e}") from e
        return property_from_row(row) if row else None

    def conditional_update_lease(self, lease: LeaseContract, expected_version: int) -> None:
        self._conditional_update(
            LeaseContractRow,
            "lease",
            lease.id,
            expected_version,
            status=lease.status.value,
            sent_warning_thresholds=sorted(lease.sent_warning_thresholds),
        )

    def conditional_update_application(self, application: RentalApplication, expected_version: int) -> None:
        self._conditional_update(
            RentalApplicationRow,
            "application",
            application.id,
            expected_version,
            status=application.status.value,
            overdue=application.overdue,
            auto_processed=application.auto_processed,
            decision_actor=application.decision_actor.value if application.decision_actor else None,
        )

    def conditional_update_property(self, prop: Property, expected_version: int) -> None:
        self._conditional_update(PropertyRow, "property", prop.id, expected_version, status=prop.status.value)

    def _conditional_update(self, model, entity_type: str, entity_id, expected_version: int, **values) -> None:
        """UPDATE ... WHERE id = :id AND version = :expected, bumping the version"""
        stmt = (
            update(model)
            .where(model.id == entity_id, model.version == expected_version)
            .values(version=expected_version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise EntityWriteError(entity_id, f"{entity_type} update failed: {e}") from e

        if result.rowcount == 0:
            raise PreconditionFailure(entity_type, entity_id, expected_version)


class NotificationRepository:
    """Repository for in-app notifications"""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, dedupe_key: str) -> bool:
        return (
            self.db.query(NotificationRow.id).filter(NotificationRow.dedupe_key == dedupe_key).first()
            is not None
        )

    def create_once(self, record: NotificationRecord) -> bool:
        """Insert the notification unless its dedupe key is already present; True when inserted"""
        if self.exists(record.dedupe_key):
            return False

        self.db.add(
            NotificationRow(
                user_id=record.recipient_id,
                type=record.category,
                title=record.title,
                message=record.message,
                action_url=record.action_url,
                metadata_json=record.payload,
                dedupe_key=record.dedupe_key,
            )
        )
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent run inserted the same key between the check and the insert
            self.db.rollback()
            return False
        return True

    def list_for_user(self, user_id: str, limit: int = 50) -> List[NotificationRow]:
        return (
            self.db.query(NotificationRow)
            .filter(NotificationRow.user_id == user_id)
            .order_by(NotificationRow.created_at.desc())
            .limit(limit)
            .all()
        )
