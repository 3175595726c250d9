from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from clubhouse.deps import db_conn, get_current_user
from clubhouse.models import User
from clubhouse.services import NotificationService

router = APIRouter(tags=["notifications"])


@router.get("/notifications")
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    with db_conn() as conn:
        service = NotificationService()
        items = service.list_for_user(conn, user.id, unread_only=unread_only, limit=limit)
        return {
            "notifications": [n.to_dict() for n in items],
            "unread": service.unread_count(conn, user.id),
        }


@router.post("/notifications/{notification_id}/read")
def mark_read(notification_id: str, user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn:
        return NotificationService().mark_read(conn, user.id, notification_id).to_dict()


@router.post("/notifications/read-all")
def mark_all_read(user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"marked": NotificationService().mark_all_read(conn, user.id)}
