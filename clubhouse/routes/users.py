from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from clubhouse.deps import audit, audit_failures, db_conn, get_current_user, require_permission
from clubhouse.models import User
from clubhouse.permissions import Permission
from clubhouse.schemas import UpdateUserRequest
from clubhouse.services import AdminService, ClubService, ScheduleService

router = APIRouter(tags=["users"])


@router.get("/users")
def list_users(
    role: str | None = None,
    status: str | None = None,
    _: User = Depends(require_permission(Permission.MANAGE_USERS)),
) -> dict[str, Any]:
    with db_conn() as conn:
        return {"users": [u.to_dict() for u in AdminService().list_users(conn, role=role, status=status)]}


@router.patch("/users/{user_id}")
def update_user(
    user_id: str,
    req: UpdateUserRequest,
    request: Request,
    user: User = Depends(require_permission(Permission.MANAGE_USERS)),
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "update", "user", user=user, resource_id=user_id):
        updated = AdminService().update_user(conn, user, user_id, role=req.role, status=req.status)
        audit(conn, request, "update", "user", user=user, resource_id=user_id, details=req.model_dump(exclude_none=True))
        return updated.to_dict()


@router.get("/me/clubs")
def my_clubs(user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"clubs": [c.to_dict() for c in ClubService().list_clubs_for_user(conn, user.id)]}


@router.get("/me/teams")
def my_teams(user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"teams": [t.to_dict() for t in ClubService().list_teams_for_user(conn, user.id)]}


@router.get("/me/schedule")
def my_schedule(user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"events": [e.to_dict() for e in ScheduleService().upcoming_for_user(conn, user.id)]}
