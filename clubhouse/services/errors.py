"""
Service-layer exceptions. The API maps them to HTTP status codes.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clubhouse.services.event_validation import EventValidationResult


class ServiceError(ValueError):
    """Base for domain errors. Anything not more specific maps to 400."""


class NotFoundError(ServiceError):
    """Referenced entity does not exist (404)."""


class PermissionDeniedError(ServiceError):
    """Caller lacks the role or membership for the operation (403)."""


class ConflictError(ServiceError):
    """Operation collides with existing state, e.g. duplicate registration (409)."""


class InvalidTransitionError(ServiceError):
    """Status change not allowed from the current status (e.g. completed -> in_progress)."""


class ValidationFailedError(ServiceError):
    """Match event rejected by validation. Carries the full result (errors, warnings, suggestions)."""

    def __init__(self, result: "EventValidationResult") -> None:
        self.result = result
        super().__init__("; ".join(result.errors) or "Invalid event")
