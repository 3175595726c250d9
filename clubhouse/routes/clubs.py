from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from clubhouse.deps import audit, audit_failures, db_conn, get_current_user
from clubhouse.models import User
from clubhouse.schemas import (
    AddClubMemberRequest,
    AddTeamMemberRequest,
    ClubStatusRequest,
    CreateClubRequest,
    CreateTeamRequest,
    UpdateClubRequest,
    UpdateTeamRequest,
)
from clubhouse.services import ClubService, MatchService

router = APIRouter(tags=["clubs"])


# ---------- Clubs ----------
@router.post("/clubs")
def create_club(req: CreateClubRequest, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    """Any user may register a club; it stays pending until a platform admin verifies it."""
    with db_conn() as conn, audit_failures(conn, request, "create", "club", user=user):
        club = ClubService().create_club(conn, user, **req.model_dump())
        audit(conn, request, "create", "club", user=user, resource_id=club.id)
        return club.to_dict()


@router.get("/clubs")
def list_clubs(
    city: str | None = None,
    level: str | None = None,
    status: str | None = None,
    search: str | None = None,
) -> dict[str, Any]:
    with db_conn() as conn:
        clubs = ClubService().list_clubs(conn, city=city, level=level, status=status, search=search)
        return {"clubs": [c.to_dict() for c in clubs]}


@router.get("/clubs/{club_id}")
def get_club(club_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        service = ClubService()
        club = service.get_club(conn, club_id)
        return {**club.to_dict(), "stats": service.club_stats(conn, club_id)}


@router.patch("/clubs/{club_id}")
def update_club(
    club_id: str, req: UpdateClubRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "update", "club", user=user, resource_id=club_id):
        club = ClubService().update_club(conn, user, club_id, **req.model_dump(exclude_none=True))
        audit(conn, request, "update", "club", user=user, resource_id=club_id)
        return club.to_dict()


@router.post("/clubs/{club_id}/verify")
def verify_club(club_id: str, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "verify", "club", user=user, resource_id=club_id):
        club = ClubService().verify_club(conn, user, club_id)
        audit(conn, request, "verify", "club", user=user, resource_id=club_id)
        return club.to_dict()


@router.post("/clubs/{club_id}/status")
def set_club_status(
    club_id: str, req: ClubStatusRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "status", "club", user=user, resource_id=club_id):
        club = ClubService().set_club_status(conn, user, club_id, req.status)
        audit(conn, request, "status", "club", user=user, resource_id=club_id, details={"status": req.status})
        return club.to_dict()


@router.get("/clubs/{club_id}/members")
def list_club_members(club_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return {"members": [m.to_dict() for m in ClubService().list_club_members(conn, club_id)]}


@router.post("/clubs/{club_id}/members")
def add_club_member(
    club_id: str, req: AddClubMemberRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "add_member", "club", user=user, resource_id=club_id):
        member = ClubService().add_club_member(conn, user, club_id, req.user_id, req.role)
        audit(conn, request, "add_member", "club", user=user, resource_id=club_id, details={"user_id": req.user_id})
        return member.to_dict()


@router.delete("/clubs/{club_id}/members/{user_id}")
def remove_club_member(
    club_id: str, user_id: str, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "remove_member", "club", user=user, resource_id=club_id):
        ClubService().remove_club_member(conn, user, club_id, user_id)
        audit(conn, request, "remove_member", "club", user=user, resource_id=club_id, details={"user_id": user_id})
        return {"removed": True}


# ---------- Teams ----------
@router.post("/clubs/{club_id}/teams")
def create_team(
    club_id: str, req: CreateTeamRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "create", "team", user=user):
        team = ClubService().create_team(conn, user, club_id, **req.model_dump())
        audit(conn, request, "create", "team", user=user, resource_id=team.id)
        return team.to_dict()


@router.get("/clubs/{club_id}/teams")
def list_teams(club_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return {"teams": [t.to_dict() for t in ClubService().list_teams(conn, club_id)]}


@router.get("/teams/{team_id}")
def get_team(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        service = ClubService()
        team = service.get_team(conn, team_id)
        return {**team.to_dict(), "roster": [m.to_dict() for m in service.roster(conn, team_id)]}


@router.patch("/teams/{team_id}")
def update_team(
    team_id: str, req: UpdateTeamRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "update", "team", user=user, resource_id=team_id):
        team = ClubService().update_team(conn, user, team_id, **req.model_dump(exclude_none=True))
        audit(conn, request, "update", "team", user=user, resource_id=team_id)
        return team.to_dict()


@router.post("/teams/{team_id}/members")
def add_team_member(
    team_id: str, req: AddTeamMemberRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "add_member", "team", user=user, resource_id=team_id):
        member = ClubService().add_team_member(conn, user, team_id, **req.model_dump())
        audit(conn, request, "add_member", "team", user=user, resource_id=team_id, details={"user_id": req.user_id})
        return member.to_dict()


@router.delete("/teams/{team_id}/members/{user_id}")
def remove_team_member(
    team_id: str, user_id: str, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "remove_member", "team", user=user, resource_id=team_id):
        ClubService().remove_team_member(conn, user, team_id, user_id)
        audit(conn, request, "remove_member", "team", user=user, resource_id=team_id, details={"user_id": user_id})
        return {"removed": True}


@router.get("/teams/{team_id}/stats")
def team_stats(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return MatchService().team_stats(conn, team_id)
