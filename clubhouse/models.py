"""
Data models for the clubhouse backend.
Domain objects only; no persistence or API logic.

Clubs own teams; teams enter tournaments; tournaments produce matches;
matches collect events while live. Admin analytics read across all of them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ---------- Users & roles ----------
class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    CLUB_ADMIN = "club_admin"
    COACH = "coach"
    PLAYER = "player"
    PARENT = "parent"
    REFEREE = "referee"


class UserStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"


# ---------- Clubs & teams ----------
class ClubLevel(str, Enum):
    RECREATIONAL = "recreational"
    COMPETITIVE = "competitive"
    ELITE = "elite"


class ClubStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClubRole(str, Enum):
    ADMIN = "admin"
    COACH = "coach"
    PLAYER = "player"
    PARENT = "parent"
    MEMBER = "member"


class TeamRole(str, Enum):
    PLAYER = "player"
    COACH = "coach"
    MANAGER = "manager"


# ---------- Tournaments ----------
class TournamentType(str, Enum):
    ROUND_ROBIN = "round_robin"
    SINGLE_ELIMINATION = "single_elimination"


class TournamentStatus(str, Enum):
    """Lifecycle: draft → registration_open → registration_closed → in_progress → completed."""
    DRAFT = "draft"
    REGISTRATION_OPEN = "registration_open"
    REGISTRATION_CLOSED = "registration_closed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ---------- Matches ----------
class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    HALFTIME = "halftime"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"


class MatchEventType(str, Enum):
    GOAL = "goal"
    PENALTY_GOAL = "penalty_goal"
    OWN_GOAL = "own_goal"
    PENALTY_MISS = "penalty_miss"
    ASSIST = "assist"
    SHOT = "shot"
    SHOT_ON_TARGET = "shot_on_target"
    CORNER = "corner"
    FOUL = "foul"
    OFFSIDE = "offside"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"
    SUBSTITUTION = "substitution"
    INJURY = "injury"
    # Period markers, written by the match lifecycle rather than by referees
    MATCH_START = "match_start"
    HALFTIME_START = "halftime_start"
    HALFTIME_END = "halftime_end"
    MATCH_END = "match_end"


# Plain string values: matched against event types read back from the database
PERIOD_MARKERS = frozenset(t.value for t in (
    MatchEventType.MATCH_START,
    MatchEventType.HALFTIME_START,
    MatchEventType.HALFTIME_END,
    MatchEventType.MATCH_END,
))

SCORING_EVENTS = frozenset({MatchEventType.GOAL.value, MatchEventType.PENALTY_GOAL.value})


# ---------- Calendar, payments, notifications ----------
class ScheduleEventType(str, Enum):
    PRACTICE = "practice"
    GAME = "game"
    MEETING = "meeting"
    TOURNAMENT = "tournament"
    OTHER = "other"


class ScheduleEventStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendeeStatus(str, Enum):
    GOING = "going"
    MAYBE = "maybe"
    NOT_GOING = "not_going"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class NotificationType(str, Enum):
    MATCH_SCHEDULED = "match_scheduled"
    MATCH_STARTED = "match_started"
    MATCH_EVENT = "match_event"
    MATCH_ENDED = "match_ended"
    TOURNAMENT = "tournament"
    TEAM = "team"
    SYSTEM = "system"


class AnalyticsPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


# ---------- User ----------
@dataclass
class User:
    """An account. password_hash is never serialized."""
    id: str
    username: str
    display_name: str
    role: str  # UserRole value
    status: str  # UserStatus value
    created_at: datetime
    email: str | None = None
    email_verified: bool = False
    password_hash: str | None = None
    last_activity: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "email": self.email,
            "email_verified": self.email_verified,
            "role": self.role,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "last_activity": _iso(self.last_activity),
        }


# ---------- Club ----------
@dataclass
class Club:
    id: str
    name: str
    created_by: str
    created_at: datetime
    description: str = ""
    city: str | None = None
    level: str = ClubLevel.RECREATIONAL.value
    status: str = ClubStatus.PENDING.value
    verified: bool = False
    is_public: bool = True
    max_teams: int = 20
    max_players_per_team: int = 25
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "city": self.city,
            "level": self.level,
            "status": self.status,
            "verified": self.verified,
            "is_public": self.is_public,
            "max_teams": self.max_teams,
            "max_players_per_team": self.max_players_per_team,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class ClubMember:
    club_id: str
    user_id: str
    role: str  # ClubRole value
    joined_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "club_id": self.club_id,
            "user_id": self.user_id,
            "role": self.role,
            "joined_at": self.joined_at.isoformat(),
        }


# ---------- Team ----------
@dataclass
class Team:
    """A club's team. gender: male | female | coed."""
    id: str
    club_id: str
    name: str
    created_by: str
    created_at: datetime
    age_group: str | None = None
    gender: str = "coed"
    level: str = ClubLevel.RECREATIONAL.value
    division: str | None = None
    season: str | None = None
    status: str = "active"
    max_players: int = 25

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "club_id": self.club_id,
            "name": self.name,
            "age_group": self.age_group,
            "gender": self.gender,
            "level": self.level,
            "division": self.division,
            "season": self.season,
            "status": self.status,
            "max_players": self.max_players,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class TeamMember:
    """Roster entry. jersey_number 0-99, unique within a team."""
    team_id: str
    user_id: str
    role: str  # TeamRole value
    joined_at: datetime
    position: str | None = None
    jersey_number: int | None = None
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "user_id": self.user_id,
            "role": self.role,
            "position": self.position,
            "jersey_number": self.jersey_number,
            "is_active": self.is_active,
            "joined_at": self.joined_at.isoformat(),
        }


# ---------- Tournament ----------
@dataclass
class Tournament:
    id: str
    name: str
    club_id: str
    organizer_id: str
    type: str  # TournamentType value
    status: str  # TournamentStatus value
    min_teams: int
    max_teams: int
    created_at: datetime
    description: str = ""
    registration_deadline: datetime | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    entry_fee: float | None = None
    started_at: datetime | None = None
    winner_team_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "club_id": self.club_id,
            "organizer_id": self.organizer_id,
            "type": self.type,
            "status": self.status,
            "min_teams": self.min_teams,
            "max_teams": self.max_teams,
            "registration_deadline": _iso(self.registration_deadline),
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "entry_fee": self.entry_fee,
            "started_at": _iso(self.started_at),
            "winner_team_id": self.winner_team_id,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class TournamentParticipant:
    tournament_id: str
    team_id: str
    status: str  # registered | withdrawn
    registered_at: datetime
    seed: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "team_id": self.team_id,
            "seed": self.seed,
            "status": self.status,
            "registered_at": self.registered_at.isoformat(),
        }


# ---------- Match ----------
@dataclass
class Match:
    """
    A fixture between two teams. away_team_id is None for a bye;
    both team ids are None for a bracket slot whose teams are not decided yet.
    """
    id: str
    home_team_id: str | None
    away_team_id: str | None
    status: str  # MatchStatus value
    created_at: datetime
    home_score: int = 0
    away_score: int = 0
    tournament_id: str | None = None
    round_number: int | None = None
    bracket_position: int | None = None
    scheduled_at: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    venue: str | None = None
    referee_id: str | None = None
    winner_team_id: str | None = None
    created_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tournament_id": self.tournament_id,
            "round_number": self.round_number,
            "bracket_position": self.bracket_position,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "status": self.status,
            "scheduled_at": _iso(self.scheduled_at),
            "started_at": _iso(self.started_at),
            "ended_at": _iso(self.ended_at),
            "venue": self.venue,
            "referee_id": self.referee_id,
            "winner_team_id": self.winner_team_id,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
        }

    def side_of(self, team_id: str) -> str | None:
        """'home', 'away' or None when team_id does not play in this match."""
        if team_id and team_id == self.home_team_id:
            return "home"
        if team_id and team_id == self.away_team_id:
            return "away"
        return None

    def opponent_of(self, team_id: str) -> str | None:
        side = self.side_of(team_id)
        if side == "home":
            return self.away_team_id
        if side == "away":
            return self.home_team_id
        return None


@dataclass
class MatchEvent:
    """One entry in a match timeline. secondary_player_id: assister, or player replaced by a substitution."""
    id: str
    match_id: str
    type: str  # MatchEventType value
    minute: int
    created_at: datetime
    team_id: str | None = None
    player_id: str | None = None
    secondary_player_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    created_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "match_id": self.match_id,
            "type": self.type,
            "minute": self.minute,
            "team_id": self.team_id,
            "player_id": self.player_id,
            "secondary_player_id": self.secondary_player_id,
            "data": self.data,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
        }


# ---------- Calendar events ----------
@dataclass
class ScheduleEvent:
    id: str
    title: str
    type: str  # ScheduleEventType value
    status: str  # ScheduleEventStatus value
    start_time: datetime
    created_by: str
    created_at: datetime
    club_id: str | None = None
    team_id: str | None = None
    duration_minutes: int = 60
    location: str | None = None
    attendance: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "status": self.status,
            "club_id": self.club_id,
            "team_id": self.team_id,
            "start_time": self.start_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "location": self.location,
            "attendance": self.attendance,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class EventAttendee:
    event_id: str
    user_id: str
    status: str  # AttendeeStatus value
    responded_at: datetime
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "user_id": self.user_id,
            "status": self.status,
            "notes": self.notes,
            "responded_at": self.responded_at.isoformat(),
        }


# ---------- Payment ----------
@dataclass
class Payment:
    id: str
    user_id: str
    amount: float
    currency: str
    method: str
    status: str  # PaymentStatus value
    created_at: datetime
    club_id: str | None = None
    description: str | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "club_id": self.club_id,
            "amount": self.amount,
            "currency": self.currency,
            "method": self.method,
            "status": self.status,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "updated_at": _iso(self.updated_at),
        }


# ---------- Notification ----------
@dataclass
class Notification:
    id: str
    user_id: str
    type: str  # NotificationType value
    title: str
    body: str
    created_at: datetime
    data: dict[str, Any] = field(default_factory=dict)
    read_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "read": self.read_at is not None,
            "read_at": _iso(self.read_at),
            "created_at": self.created_at.isoformat(),
        }


# ---------- Admin ----------
@dataclass
class AuditLog:
    id: str
    action: str
    resource: str
    success: bool
    timestamp: datetime
    user_id: str | None = None
    username: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.username,
            "action": self.action,
            "resource": self.resource,
            "resource_id": self.resource_id,
            "details": self.details,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "success": self.success,
            "error_message": self.error_message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class SystemHealth:
    """
    One health sample. uptime is a percentage, response_time_ms the database
    round trip; cpu/memory/disk are utilisation fractions 0-1.
    """
    id: str
    status: str  # healthy | degraded | down
    uptime: float
    response_time_ms: float
    error_count: int
    cpu: float
    memory: float
    disk: float
    network_bytes: int
    recorded_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "uptime": self.uptime,
            "response_time_ms": self.response_time_ms,
            "error_count": self.error_count,
            "cpu": self.cpu,
            "memory": self.memory,
            "disk": self.disk,
            "network_bytes": self.network_bytes,
            "recorded_at": self.recorded_at.isoformat(),
        }


@dataclass
class AnalyticsSnapshot:
    """Persisted output of one generate_analytics run."""
    id: str
    period: str  # AnalyticsPeriod value
    date: datetime
    metrics: dict[str, Any]
    insights: list[dict[str, Any]]
    generated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "period": self.period,
            "date": self.date.isoformat(),
            "metrics": self.metrics,
            "insights": self.insights,
            "generated_at": self.generated_at.isoformat(),
        }
