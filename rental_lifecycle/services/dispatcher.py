"""Notification dispatcher with bounded retry, decoupled from transition success"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable

from rental_lifecycle.domain.exceptions import DispatchError
from rental_lifecycle.domain.models import NotificationRecord
from rental_lifecycle.domain.ports import NotificationService
from rental_lifecycle.infrastructure.observability.metrics import notification_counter

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    delivered: int = 0
    failed: int = 0


class NotificationDispatcher:
    """Best-effort, at-least-once delivery of notifications produced by the executor"""

    def __init__(
        self,
        service: NotificationService,
        max_attempts: int = 2,
        backoff_seconds: float = 0.5,
        timeout_seconds: float = 5.0,
    ):
        self.service = service
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, record: NotificationRecord) -> bool:
        """
        Deliver one record, retrying transient failures.

        Retry strategy:
        - max_attempts total attempts (default 2: one retry)
        - Exponential backoff between attempts: base, 2*base, ...
        - Permanent failures (DispatchError.transient is False) are not retried

        Returns:
            True when delivered, False after the final failure. Never raises
            for delivery problems: the state transition behind the record is
            already committed and must stay that way.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                await asyncio.wait_for(self.service.deliver(record), timeout=self.timeout_seconds)
                notification_counter.labels(outcome="delivered").inc()
                return True

            except (DispatchError, asyncio.TimeoutError) as e:
                transient = getattr(e, "transient", True)
                if not transient or attempt >= self.max_attempts:
                    notification_counter.labels(outcome="failed").inc()
                    logger.error(
                        f"Notification delivery failed: {str(e) or 'timeout'}",
                        extra={
                            "dedupe_key": record.dedupe_key,
                            "category": record.category,
                            "recipient_id": record.recipient_id,
                            "attempts": attempt,
                            "step": "dispatch",
                        },
                    )
                    return False

                backoff = self.backoff_seconds * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)

    async def dispatch_all(self, records: Iterable[NotificationRecord]) -> DispatchReport:
        report = DispatchReport()
        for record in records:
            if await self.dispatch(record):
                report.delivered += 1
            else:
                report.failed += 1
        return report
