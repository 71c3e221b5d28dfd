"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from rental_lifecycle.config import settings
from rental_lifecycle.domain.policy import LifecyclePolicy
from rental_lifecycle.domain.ports import NotificationService
from rental_lifecycle.infrastructure.clients.inbox import InboxNotificationService
from rental_lifecycle.infrastructure.clients.notifications import HttpNotificationService
from rental_lifecycle.infrastructure.database.repositories import SqlEntityStore
from rental_lifecycle.infrastructure.database.session import get_db
from rental_lifecycle.services.dispatcher import NotificationDispatcher
from rental_lifecycle.services.executor import TransitionExecutor
from rental_lifecycle.services.orchestrator import LifecycleOrchestrator
from rental_lifecycle.utils.date_utils import utcnow


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Callable[[], datetime]:
    """Time source used to evaluate deadlines"""
    return utcnow


def get_policy() -> LifecyclePolicy:
    """Provide lifecycle rules built from settings"""
    return LifecyclePolicy.from_settings(settings)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Provide the configured notification backend"""
    if settings.notification_backend == "http":
        return HttpNotificationService()
    return InboxNotificationService(db)


def get_orchestrator(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    policy: LifecyclePolicy = Depends(get_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> LifecycleOrchestrator:
    """Wire one run's store, executor and dispatcher"""
    store = SqlEntityStore(db)
    return LifecycleOrchestrator(
        store=store,
        executor=TransitionExecutor(store, site_url=settings.site_url),
        dispatcher=NotificationDispatcher(
            notification_service,
            max_attempts=settings.dispatch_max_attempts,
            backoff_seconds=settings.dispatch_backoff_seconds,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        policy=policy,
        clock=clock,
        entity_timeout_seconds=settings.entity_timeout_seconds,
        max_concurrency=settings.max_concurrency,
    )
