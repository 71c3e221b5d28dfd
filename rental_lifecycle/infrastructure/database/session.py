"""Database session management with connection pooling"""

from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from rental_lifecycle.config import settings


def engine_options(database_url: str, statement_timeout_seconds: float) -> Dict[str, Any]:
    """Pool and timeout options; SQLite (tests, local runs) takes neither"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    # Server-side bound on every statement
    timeout_ms = int(statement_timeout_seconds * 1000)
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
        "connect_args": {"options": f"-c statement_timeout={timeout_ms}"},
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url, settings.store_timeout_seconds))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
