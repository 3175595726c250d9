"""
Matches: fixtures, live lifecycle, event entry and stats.
Every state change is pushed to WebSocket subscribers as the full live state.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect

from clubhouse.deps import audit, audit_failures, db_conn, get_current_user
from clubhouse.live import hub
from clubhouse.models import Match, User
from clubhouse.schemas import CreateMatchRequest, EndMatchRequest, MatchEventRequest, UpdateMatchScheduleRequest
from clubhouse.services import MatchService, NotFoundError
from clubhouse.services.event_validation import EventDraft

router = APIRouter(tags=["matches"])


def _draft(req: MatchEventRequest) -> EventDraft:
    return EventDraft(
        type=req.type,
        minute=req.minute,
        team_id=req.team_id,
        player_id=req.player_id,
        secondary_player_id=req.secondary_player_id,
        data=dict(req.data),
    )


async def _push(match_id: str) -> None:
    if hub.subscriber_count(match_id) == 0:
        return
    with db_conn() as conn:
        state = MatchService().live_state(conn, match_id)
    await hub.broadcast(match_id, state)


@router.post("/matches")
def create_match(req: CreateMatchRequest, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "create", "match", user=user):
        m = MatchService().create_match(conn, user, **req.model_dump())
        audit(conn, request, "create", "match", user=user, resource_id=m.id)
        return m.to_dict()


@router.get("/matches")
def list_matches(
    tournament_id: str | None = None, status: str | None = None, team_id: str | None = None
) -> dict[str, Any]:
    with db_conn() as conn:
        matches = MatchService().list_matches(conn, tournament_id=tournament_id, status=status, team_id=team_id)
        return {"matches": [m.to_dict() for m in matches]}


@router.get("/matches/{match_id}")
def get_match(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return MatchService().live_state(conn, match_id)


@router.patch("/matches/{match_id}")
async def update_schedule(
    match_id: str, req: UpdateMatchScheduleRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "reschedule", "match", user=user, resource_id=match_id):
        m = MatchService().update_schedule(conn, user, match_id, **req.model_dump())
        audit(conn, request, "reschedule", "match", user=user, resource_id=match_id)
    await _push(match_id)
    return m.to_dict()


async def _lifecycle(match_id: str, request: Request, user: User, action: str, **kwargs: Any) -> dict[str, Any]:
    """Run one MatchService lifecycle method (start_match, end_match, ...) then push the new state."""
    with db_conn() as conn, audit_failures(conn, request, action, "match", user=user, resource_id=match_id):
        service = MatchService()
        m: Match = getattr(service, action)(conn, user, match_id, **kwargs)
        audit(conn, request, action, "match", user=user, resource_id=match_id)
    await _push(match_id)
    return m.to_dict()


@router.post("/matches/{match_id}/start")
async def start_match(match_id: str, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return await _lifecycle(match_id, request, user, "start_match")


@router.post("/matches/{match_id}/halftime")
async def start_halftime(match_id: str, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return await _lifecycle(match_id, request, user, "start_halftime")


@router.post("/matches/{match_id}/resume")
async def resume_match(match_id: str, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return await _lifecycle(match_id, request, user, "resume_match")


@router.post("/matches/{match_id}/end")
async def end_match(
    match_id: str, request: Request, req: EndMatchRequest | None = None, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    winner = req.winner_team_id if req else None
    return await _lifecycle(match_id, request, user, "end_match", winner_team_id=winner)


@router.post("/matches/{match_id}/cancel")
async def cancel_match(match_id: str, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return await _lifecycle(match_id, request, user, "cancel_match")


@router.post("/matches/{match_id}/postpone")
async def postpone_match(match_id: str, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    return await _lifecycle(match_id, request, user, "postpone_match")


@router.post("/matches/{match_id}/reschedule")
async def reschedule_match(
    match_id: str, request: Request, req: UpdateMatchScheduleRequest | None = None,
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return await _lifecycle(
        match_id, request, user, "reschedule_match", scheduled_at=req.scheduled_at if req else None
    )


# ---------- Events ----------
@router.post("/matches/{match_id}/events/validate")
def validate_event(match_id: str, req: MatchEventRequest, _: User = Depends(get_current_user)) -> dict[str, Any]:
    """Dry run: errors, warnings and suggestions without recording anything."""
    with db_conn() as conn:
        return MatchService().validate(conn, match_id, _draft(req)).to_dict()


@router.post("/matches/{match_id}/events")
async def record_event(
    match_id: str, req: MatchEventRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    details = {"type": req.type, "minute": req.minute}
    with db_conn() as conn, audit_failures(
        conn, request, "record_event", "match", user=user, resource_id=match_id, details=details
    ):
        created, result = MatchService().record_event(conn, user, match_id, _draft(req))
        audit(conn, request, "record_event", "match", user=user, resource_id=match_id, details=details)
    await _push(match_id)
    return {"events": [e.to_dict() for e in created], "validation": result.to_dict()}


@router.delete("/matches/{match_id}/events/{event_id}")
async def delete_event(
    match_id: str, event_id: str, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "delete_event", "match", user=user, resource_id=match_id):
        m = MatchService().delete_event(conn, user, match_id, event_id)
        audit(conn, request, "delete_event", "match", user=user, resource_id=match_id, details={"event_id": event_id})
    await _push(match_id)
    return m.to_dict()


@router.get("/matches/{match_id}/events")
def timeline(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return {"events": [e.to_dict() for e in MatchService().timeline(conn, match_id)]}


@router.get("/matches/{match_id}/stats")
def match_stats(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        service = MatchService()
        return {"team": service.match_stats(conn, match_id), "players": service.player_stats(conn, match_id)}


@router.get("/matches/{match_id}/report")
def match_report(match_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return MatchService().match_report(conn, match_id)


@router.get("/players/{user_id}/stats")
def player_season_stats(user_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return MatchService().player_season_stats(conn, user_id)


# ---------- Live ----------
@router.websocket("/ws/matches/{match_id}")
async def websocket_match(websocket: WebSocket, match_id: str) -> None:
    """
    Subscribe to live updates for a match. On connect the current state is sent
    immediately; afterwards every change is pushed as { type: "live_update", ... }.
    """
    await websocket.accept()
    with db_conn() as conn:
        try:
            state = MatchService().live_state(conn, match_id)
        except NotFoundError:
            await websocket.send_json({"type": "error", "detail": f"Match not found: {match_id}"})
            await websocket.close(code=4404)
            return
    hub.subscribe(match_id, websocket)
    try:
        await websocket.send_json(state)
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.unsubscribe(match_id, websocket)
