"""
chronicle.errors — Caller-visible error taxonomy
=================================================

    ChronicleError
       ├── Unauthorized       policy denial (not owner / collaborator / moderator)
       ├── RateLimited        contribution throttle exceeded
       ├── NotFound           referenced project or entry missing
       └── ValidationError    malformed draft or update
              └── InvalidTransition   moderating an entry that is not pending

All of these are raised before any write.  Notification and mention
failures never surface as exceptions; see
:mod:`chronicle.services.notification_service`.
"""

from __future__ import annotations

from typing import Any


class ChronicleError(Exception):
    """Base class for every error raised by the contribution core."""

    error_code = "CHRONICLE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class Unauthorized(ChronicleError):
    error_code = "UNAUTHORIZED"


class RateLimited(ChronicleError):
    error_code = "RATE_LIMITED"


class NotFound(ChronicleError):
    """Raised as ``NotFound("Project", project_id)``."""

    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            f"{resource} with id '{identifier}' not found",
            details={"resource": resource, "id": identifier},
        )


class ValidationError(ChronicleError):
    error_code = "VALIDATION_ERROR"


class InvalidTransition(ValidationError):
    error_code = "INVALID_TRANSITION"
