"""Ports (interfaces) consumed by the lifecycle automation services.

The entity store and the notification service belong to the surrounding
application; these protocols are the minimal contracts the automation needs
from them.
"""

import uuid
from typing import ContextManager, List, Optional, Protocol

from rental_lifecycle.domain.models import LeaseContract, NotificationRecord, Property, RentalApplication


class EntityStore(Protocol):
    """Durable store of leases, applications and properties with conditional writes"""

    def list_active_leases(self) -> List[LeaseContract]:
        ...

    def list_pending_applications(self) -> List[RentalApplication]:
        ...

    def get_property(self, property_id: uuid.UUID) -> Optional[Property]:
        ...

    def conditional_update_lease(self, lease: LeaseContract, expected_version: int) -> None:
        ...

    def conditional_update_application(self, application: RentalApplication, expected_version: int) -> None:
        ...

    def conditional_update_property(self, prop: Property, expected_version: int) -> None:
        ...

    def transaction(self) -> ContextManager[None]:
        ...


class NotificationService(Protocol):
    """Delivers one notification; raises DispatchError on failure"""

    async def deliver(self, record: NotificationRecord) -> None:
        ...
