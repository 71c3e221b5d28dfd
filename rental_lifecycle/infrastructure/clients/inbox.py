"""In-app inbox delivery: notifications written straight into the notification table"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rental_lifecycle.domain.exceptions import DispatchError
from rental_lifecycle.domain.models import NotificationRecord
from rental_lifecycle.infrastructure.database.repositories import NotificationRepository
from rental_lifecycle.infrastructure.observability.metrics import notification_latency_histogram

logger = logging.getLogger(__name__)


class InboxNotificationService:
    """Writes notifications to the user's inbox; an existing dedupe key counts as delivered"""

    def __init__(self, db: Session):
        self.repository = NotificationRepository(db)

    async def deliver(self, record: NotificationRecord) -> None:
        try:
            with notification_latency_histogram.time():
                created = self.repository.create_once(record)
        except SQLAlchemyError as e:
            self.repository.db.rollback()
            raise DispatchError(f"Inbox write failed: {e}") from e

        if not created:
            logger.info("Duplicate notification suppressed", extra={"dedupe_key": record.dedupe_key})
