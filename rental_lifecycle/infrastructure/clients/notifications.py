"""Notification service HTTP client"""

import httpx
from dataclasses import asdict
from rental_lifecycle.config import settings
from rental_lifecycle.domain.exceptions import DispatchError
from rental_lifecycle.domain.models import NotificationRecord
from rental_lifecycle.infrastructure.observability.metrics import notification_latency_histogram


class HttpNotificationService:
    """Client for the external notification service (mail/SMS/push fan-out)"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.notification_service_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def deliver(self, record: NotificationRecord) -> None:
        """
        Deliver a single notification.

        The dedupe key travels as the Idempotency-Key header so the service can
        drop a delivery it has already accepted.

        Raises:
            DispatchError: transient on timeouts, network errors and 5xx;
                permanent on 4xx
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with notification_latency_histogram.time():
                    response = await client.post(
                        self.base_url,
                        json=asdict(record),
                        headers={"Idempotency-Key": record.dedupe_key},
                    )
                    response.raise_for_status()

            except httpx.TimeoutException as e:
                raise DispatchError(f"Notification service timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                raise DispatchError(f"Notification service error: {status}", transient=status >= 500) from e
            except httpx.RequestError as e:
                raise DispatchError(f"Notification service unreachable: {e}") from e
