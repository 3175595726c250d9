"""
Service layer: domain rules, state machines and orchestration over the repositories.
Services raise ServiceError subclasses; the API maps them to HTTP status codes.
"""
from .admin_service import AdminService
from .club_service import ClubService
from .errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationFailedError,
)
from .match_service import MatchService
from .notification_service import NotificationService
from .payment_service import PaymentService
from .schedule_service import ScheduleService
from .tournament_service import TournamentService

__all__ = [
    "AdminService",
    "ClubService",
    "MatchService",
    "NotificationService",
    "PaymentService",
    "ScheduleService",
    "TournamentService",
    "ServiceError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "InvalidTransitionError",
    "ValidationFailedError",
]
