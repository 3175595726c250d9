"""
Request bodies for the HTTP API. Responses are plain dicts built from model to_dict().
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ---------- Auth & users ----------
class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)
    display_name: str | None = Field(None, max_length=200)
    email: str | None = None


class LoginRequest(BaseModel):
    username: str
    password: str


class UpdateUserRequest(BaseModel):
    role: str | None = Field(None, description="super_admin, club_admin, coach, player, parent or referee")
    status: str | None = Field(None, description="active, pending or suspended")


# ---------- Clubs & teams ----------
class CreateClubRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    city: str | None = None
    level: str = "recreational"
    is_public: bool = True
    max_teams: int = Field(20, ge=1, le=200)
    max_players_per_team: int = Field(25, ge=1, le=100)


class UpdateClubRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    city: str | None = None
    level: str | None = None
    is_public: bool | None = None
    max_teams: int | None = Field(None, ge=1, le=200)
    max_players_per_team: int | None = Field(None, ge=1, le=100)


class ClubStatusRequest(BaseModel):
    status: str


class AddClubMemberRequest(BaseModel):
    user_id: str
    role: str = "member"


class CreateTeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    age_group: str | None = Field(None, description="e.g. U12, U14, Adult")
    gender: str = "coed"
    level: str | None = Field(None, description="defaults to the club level")
    division: str | None = None
    season: str | None = None
    max_players: int = Field(25, ge=1, le=100)


class UpdateTeamRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    age_group: str | None = None
    level: str | None = None
    division: str | None = None
    season: str | None = None
    status: str | None = None
    max_players: int | None = Field(None, ge=1, le=100)


class AddTeamMemberRequest(BaseModel):
    user_id: str
    role: str = "player"
    position: str | None = None
    jersey_number: int | None = Field(None, description="0-99, unique within the team")


# ---------- Tournaments ----------
class CreateTournamentRequest(BaseModel):
    club_id: str
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., description="round_robin or single_elimination")
    max_teams: int = Field(..., ge=2, le=64)
    min_teams: int = Field(2, ge=2, le=64)
    description: str = ""
    registration_deadline: datetime | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    entry_fee: float | None = Field(None, ge=0)


class TournamentStatusRequest(BaseModel):
    status: str


class RegisterTeamRequest(BaseModel):
    team_id: str
    seed: int | None = Field(None, ge=1)


# ---------- Matches ----------
class CreateMatchRequest(BaseModel):
    home_team_id: str
    away_team_id: str
    scheduled_at: datetime | None = None
    venue: str | None = None
    referee_id: str | None = None


class UpdateMatchScheduleRequest(BaseModel):
    scheduled_at: datetime | None = None
    venue: str | None = None
    referee_id: str | None = None


class EndMatchRequest(BaseModel):
    winner_team_id: str | None = Field(None, description="Required when a knockout match ends level")


class MatchEventRequest(BaseModel):
    type: str
    minute: int
    team_id: str
    player_id: str | None = None
    secondary_player_id: str | None = Field(
        None, description="Scorer for an assist; player going off for a substitution"
    )
    data: dict[str, Any] = Field(default_factory=dict)


# ---------- Schedule ----------
class CreateScheduleEventRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    start_time: datetime
    type: str = "practice"
    club_id: str | None = None
    team_id: str | None = None
    duration_minutes: int = Field(60, ge=1, le=24 * 60)
    location: str | None = None


class RsvpRequest(BaseModel):
    status: str = Field(..., description="going, maybe or not_going")
    notes: str | None = None


class CompleteEventRequest(BaseModel):
    attendance: int | None = Field(None, ge=0)


# ---------- Payments ----------
class CreatePaymentRequest(BaseModel):
    amount: float = Field(..., gt=0)
    user_id: str | None = None
    club_id: str | None = None
    currency: str = Field("USD", min_length=3, max_length=3)
    method: str = "card"
    description: str | None = None


class PaymentStatusRequest(BaseModel):
    status: str = Field(..., description="succeeded, failed, pending (retry) or refunded")


# ---------- Notifications & admin ----------
class BroadcastRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1)
    role: str | None = None


class GenerateAnalyticsRequest(BaseModel):
    period: str = "daily"
    date: datetime | None = None


class SystemHealthRequest(BaseModel):
    status: str = Field(..., description="healthy, degraded or down")
    uptime: float = Field(..., ge=0, le=100)
    response_time_ms: float = Field(..., ge=0)
    error_count: int = Field(0, ge=0)
    cpu: float = Field(0.0, ge=0, le=1)
    memory: float = Field(0.0, ge=0, le=1)
    disk: float = Field(0.0, ge=0, le=1)
    network_bytes: int = Field(0, ge=0)
