from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from clubhouse.deps import audit, audit_failures, db_conn, get_current_user
from clubhouse.models import User
from clubhouse.schemas import CompleteEventRequest, CreateScheduleEventRequest, RsvpRequest
from clubhouse.services import ScheduleService

router = APIRouter(tags=["schedule"])


@router.post("/events")
def create_event(
    req: CreateScheduleEventRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "create", "event", user=user):
        ev = ScheduleService().create_event(conn, user, **req.model_dump())
        audit(conn, request, "create", "event", user=user, resource_id=ev.id)
        return ev.to_dict()


@router.get("/events")
def list_events(
    team_id: str | None = None,
    club_id: str | None = None,
    status: str | None = None,
    upcoming: bool = False,
) -> dict[str, Any]:
    with db_conn() as conn:
        events = ScheduleService().list_events(
            conn, team_id=team_id, club_id=club_id, status=status, upcoming_only=upcoming
        )
        return {"events": [e.to_dict() for e in events]}


@router.get("/events/{event_id}")
def get_event(event_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        service = ScheduleService()
        ev = service.get_event(conn, event_id)
        return {**ev.to_dict(), "attendees": [a.to_dict() for a in service.attendees(conn, event_id)]}


@router.post("/events/{event_id}/rsvp")
def rsvp(event_id: str, req: RsvpRequest, user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn:
        return ScheduleService().rsvp(conn, user, event_id, req.status, req.notes).to_dict()


@router.post("/events/{event_id}/cancel")
def cancel_event(event_id: str, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "cancel", "event", user=user, resource_id=event_id):
        ev = ScheduleService().cancel_event(conn, user, event_id)
        audit(conn, request, "cancel", "event", user=user, resource_id=event_id)
        return ev.to_dict()


@router.post("/events/{event_id}/complete")
def complete_event(
    event_id: str, request: Request, req: CompleteEventRequest | None = None, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "complete", "event", user=user, resource_id=event_id):
        ev = ScheduleService().complete_event(conn, user, event_id, attendance=req.attendance if req else None)
        audit(conn, request, "complete", "event", user=user, resource_id=event_id)
        return ev.to_dict()
