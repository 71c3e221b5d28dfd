"""SQLAlchemy ORM models for the tables lifecycle automation reads and mutates"""

import uuid
from sqlalchemy import Column, String, Boolean, Float, DateTime, Integer, ForeignKey, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class PropertyRow(Base):
    """Rental property listing"""

    __tablename__ = "property"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False, default="")
    status = Column(String(32), nullable=False, default="available")
    version = Column(Integer, nullable=False, default=1)  # optimistic concurrency token
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    leases = relationship("LeaseContractRow", back_populates="property")
    applications = relationship("RentalApplicationRow", back_populates="property")


class LeaseContractRow(Base):
    """Lease contract between a landlord and a tenant"""

    __tablename__ = "lease_contract"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_number = Column(Text, nullable=False, unique=True)
    property_id = Column(UUID(as_uuid=True), ForeignKey("property.id"), nullable=False, index=True)
    tenant_id = Column(Text, nullable=False)
    landlord_id = Column(Text, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="active", index=True)
    sent_warning_thresholds = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    property = relationship("PropertyRow", back_populates="leases")


class RentalApplicationRow(Base):
    """Tenant application for a property"""

    __tablename__ = "rental_application"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    property_id = Column(UUID(as_uuid=True), ForeignKey("property.id"), nullable=False, index=True)
    applicant_id = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="default")
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(32), nullable=False, default="pending", index=True)
    # Per-application overrides of the category configuration
    sla_hours = Column(Float, nullable=True)
    grace_hours = Column(Float, nullable=True)
    auto_processing_policy = Column(String(32), nullable=True)
    overdue = Column(Boolean, nullable=False, default=False)
    auto_processed = Column(Boolean, nullable=False, default=False)
    decision_actor = Column(String(16), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    property = relationship("PropertyRow", back_populates="applications")


class NotificationRow(Base):
    """In-app notification inbox entry; dedupe_key makes redelivery idempotent"""

    __tablename__ = "notification"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    action_url = Column(Text, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=True)
    dedupe_key = Column(Text, nullable=False, unique=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
