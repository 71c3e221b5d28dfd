"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ConfigError(DomainException):
    """Warning schedule or SLA configuration is missing or invalid"""

    pass


class LoadError(DomainException):
    """Entity store could not be read at the start of a run"""

    pass


class EntityWriteError(DomainException):
    """Store failure while applying transitions to a single entity"""

    def __init__(self, entity_id, message: str):
        super().__init__(f"{entity_id}: {message}")
        self.entity_id = entity_id


class PreconditionFailure(DomainException):
    """Concurrency token no longer matches; another writer got there first"""

    def __init__(self, entity_type: str, entity_id, expected_version: int):
        super().__init__(f"{entity_type} {entity_id} is no longer at version {expected_version}")
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version


class DispatchError(DomainException):
    """Notification service rejected or failed to acknowledge a delivery"""

    def __init__(self, message: str, transient: bool = True):
        super().__init__(message)
        self.transient = transient


class IllegalTransitionError(DomainException):
    """Requested status change is not in the allowed transition table"""

    pass
