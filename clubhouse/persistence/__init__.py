"""
Persistence layer for clubhouse data.
No business logic, only read/write interfaces.
"""
from .db import get_connection, get_db_path, init_db, set_db_path
from .repositories import (
    AnalyticsSnapshotRepository,
    AuditLogRepository,
    ClubMemberRepository,
    ClubRepository,
    EventAttendeeRepository,
    MatchEventRepository,
    MatchRepository,
    NotificationRepository,
    PaymentRepository,
    ScheduleEventRepository,
    SystemHealthRepository,
    TeamMemberRepository,
    TeamRepository,
    TournamentParticipantRepository,
    TournamentRepository,
    UserRepository,
)

__all__ = [
    "get_connection",
    "get_db_path",
    "init_db",
    "set_db_path",
    "AnalyticsSnapshotRepository",
    "AuditLogRepository",
    "ClubMemberRepository",
    "ClubRepository",
    "EventAttendeeRepository",
    "MatchEventRepository",
    "MatchRepository",
    "NotificationRepository",
    "PaymentRepository",
    "ScheduleEventRepository",
    "SystemHealthRepository",
    "TeamMemberRepository",
    "TeamRepository",
    "TournamentParticipantRepository",
    "TournamentRepository",
    "UserRepository",
]
