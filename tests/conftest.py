"""Pytest fixtures for testing"""

import uuid
import pytest
from datetime import timedelta
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from rental_lifecycle.api.main import create_app
from rental_lifecycle.api.dependencies import get_clock
from rental_lifecycle.infrastructure.database.models import (
    Base,
    LeaseContractRow,
    PropertyRow,
    RentalApplicationRow,
)
from rental_lifecycle.infrastructure.database.session import get_db
from fakes import NOW


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a frozen clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: (lambda: NOW)
    return TestClient(app)


@pytest.fixture
def property_row(db: Session):
    """Factory for persisted properties"""

    def create(status: str = "rented", owner_id: str = "landlord-1") -> PropertyRow:
        row = PropertyRow(owner_id=owner_id, title="Appartement 3 pièces", status=status)
        db.add(row)
        db.commit()
        return row

    return create


@pytest.fixture
def lease_row(db: Session):
    """Factory for persisted leases ending `days_remaining` days after NOW"""

    def create(prop: PropertyRow, days_remaining: float, sent=(), status: str = "active") -> LeaseContractRow:
        row = LeaseContractRow(
            contract_number=f"BAIL-{uuid.uuid4().hex[:8]}",
            property_id=prop.id,
            tenant_id="tenant-1",
            landlord_id=prop.owner_id,
            start_date=NOW - timedelta(days=365),
            end_date=NOW + timedelta(days=days_remaining),
            status=status,
            sent_warning_thresholds=list(sent),
        )
        db.add(row)
        db.commit()
        return row

    return create


@pytest.fixture
def application_row(db: Session):
    """Factory for persisted applications submitted `age` before NOW"""

    def create(prop: PropertyRow, age: timedelta, status: str = "pending", **fields) -> RentalApplicationRow:
        row = RentalApplicationRow(
            property_id=prop.id,
            applicant_id="applicant-1",
            submitted_at=NOW - age,
            status=status,
            **fields,
        )
        db.add(row)
        db.commit()
        return row

    return create
