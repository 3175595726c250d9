from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from clubhouse.deps import audit, audit_failures, db_conn, get_current_user
from clubhouse.models import User
from clubhouse.schemas import CreateTournamentRequest, RegisterTeamRequest, TournamentStatusRequest
from clubhouse.services import TournamentService

router = APIRouter(tags=["tournaments"])


@router.post("/tournaments")
def create_tournament(
    req: CreateTournamentRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "create", "tournament", user=user):
        t = TournamentService().create_tournament(conn, user, **req.model_dump())
        audit(conn, request, "create", "tournament", user=user, resource_id=t.id)
        return t.to_dict()


@router.get("/tournaments")
def list_tournaments(club_id: str | None = None, status: str | None = None) -> dict[str, Any]:
    with db_conn() as conn:
        return {"tournaments": [t.to_dict() for t in TournamentService().list_tournaments(conn, club_id, status)]}


@router.get("/tournaments/{tournament_id}")
def get_tournament(tournament_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        service = TournamentService()
        t = service.get_tournament(conn, tournament_id)
        return {
            **t.to_dict(),
            "participants": [p.to_dict() for p in service.participants(conn, tournament_id)],
            "progress": service.progress(conn, tournament_id),
        }


@router.post("/tournaments/{tournament_id}/status")
def transition_status(
    tournament_id: str, req: TournamentStatusRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    """Open/close registration, start, complete or cancel."""
    with db_conn() as conn, audit_failures(
        conn, request, "status", "tournament", user=user, resource_id=tournament_id
    ):
        t = TournamentService().transition_status(conn, user, tournament_id, req.status)
        audit(conn, request, "status", "tournament", user=user, resource_id=tournament_id, details={"status": req.status})
        return t.to_dict()


@router.post("/tournaments/{tournament_id}/teams")
def register_team(
    tournament_id: str, req: RegisterTeamRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(
        conn, request, "register", "tournament", user=user, resource_id=tournament_id
    ):
        p = TournamentService().register_team(conn, user, tournament_id, req.team_id, seed=req.seed)
        audit(conn, request, "register", "tournament", user=user, resource_id=tournament_id, details={"team_id": req.team_id})
        return p.to_dict()


@router.delete("/tournaments/{tournament_id}/teams/{team_id}")
def withdraw_team(
    tournament_id: str, team_id: str, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(
        conn, request, "withdraw", "tournament", user=user, resource_id=tournament_id
    ):
        TournamentService().withdraw_team(conn, user, tournament_id, team_id)
        audit(conn, request, "withdraw", "tournament", user=user, resource_id=tournament_id, details={"team_id": team_id})
        return {"withdrawn": True}


@router.get("/tournaments/{tournament_id}/standings")
def standings(tournament_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return {"standings": TournamentService().standings(conn, tournament_id)}


@router.get("/tournaments/{tournament_id}/bracket")
def bracket(tournament_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return TournamentService().bracket(conn, tournament_id)


@router.get("/tournaments/{tournament_id}/top-scorers")
def top_scorers(tournament_id: str, limit: int = 10) -> dict[str, Any]:
    with db_conn() as conn:
        return {"top_scorers": TournamentService().top_scorers(conn, tournament_id, limit=limit)}
