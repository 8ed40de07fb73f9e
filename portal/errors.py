"""Domain error taxonomy shared by stores, services and the HTTP layer."""
from __future__ import annotations


class PortalError(Exception):
    """Base class for every domain failure."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Missing/malformed field or duplicate unique key."""

    def __init__(self, message: str, errors: list[str] | None = None, field: str | None = None):
        super().__init__(message)
        self.errors = errors or [message]
        self.field = field


class NotFound(PortalError):
    def __init__(self, entity: str, key: object):
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class CapacityExceeded(PortalError):
    def __init__(self, class_id: str, capacity: int):
        super().__init__(f"Class capacity is {capacity} students")
        self.class_id = class_id
        self.capacity = capacity


class AlreadyEnrolled(PortalError):
    def __init__(self, class_id: str, student_id: str):
        super().__init__(f"{student_id} is already enrolled in this class")
        self.class_id = class_id
        self.student_id = student_id


class PermissionDenied(PortalError):
    pass


class PersistenceFailure(PortalError):
    """Raised by key-value backends; the adapter logs it and never re-raises."""
