"""Domain errors raised by the registration and check-in services.

Each error carries the HTTP status it maps to and a ``kind`` name that is
returned to clients, so routers and the app-level exception handler never
need to know about individual error classes.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class GatepassError(Exception):
    """Base class for expected, caller-facing failures"""

    status_code = 500

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra: Dict[str, Any] = extra

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        payload = {"kind": self.kind, "message": self.message}
        payload.update(self.extra)
        return payload


class ValidationError(GatepassError):
    """A required form field is missing or a value has the wrong shape"""

    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"{field} is required", field=field)
        self.field = field


class StructuralSchemaError(GatepassError):
    """A group's field list would break the Name/Email invariant"""

    status_code = 400


class MissingEmailError(GatepassError):
    status_code = 400

    def __init__(self, message: str = "An email address is required"):
        super().__init__(message)


class EventNotFoundError(GatepassError):
    status_code = 404

    def __init__(self, message: str = "Event not found"):
        super().__init__(message)


class GroupNotFoundError(GatepassError):
    status_code = 404

    def __init__(self, message: str = "Group not found"):
        super().__init__(message)


class RegistrationNotFoundError(GatepassError):
    status_code = 404

    def __init__(self, message: str = "Registration not found"):
        super().__init__(message)


class GroupClosedError(GatepassError):
    status_code = 403

    def __init__(self, message: str = "Registration for this group is closed"):
        super().__init__(message)


class CapacityExceededError(GatepassError):
    status_code = 400

    def __init__(self, message: str = "Capacity reached"):
        super().__init__(message)


class DuplicateGroupError(GatepassError):
    status_code = 409


class AlreadyCheckedInError(GatepassError):
    """Expected outcome of a repeated scan; reports the original check-in time"""

    status_code = 400

    def __init__(self, checked_in_at: Optional[datetime]):
        super().__init__(
            "Already checked in",
            checked_in_at=checked_in_at.isoformat() if checked_in_at else None,
        )
        self.checked_in_at = checked_in_at


class DuplicateTokenError(GatepassError):
    """Token collisions persisted past the allowed retries"""

    status_code = 500

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not mint a unique registration token after {attempts} attempts"
        )
        self.attempts = attempts


class NotificationDeliveryError(GatepassError):
    """Raised by the email backend; never surfaced to registrants"""

    status_code = 502
