"""
Platform administration: analytics snapshots, audit trail, system health,
security summary, business-intelligence series and sample data.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from clubhouse.deps import audit, audit_failures, db_conn, require_permission
from clubhouse.models import User
from clubhouse.permissions import Permission
from clubhouse.schemas import BroadcastRequest, GenerateAnalyticsRequest, SystemHealthRequest
from clubhouse.services import AdminService, NotificationService

router = APIRouter(prefix="/admin", tags=["admin"])

_view = require_permission(Permission.VIEW_ANALYTICS)
_system = require_permission(Permission.MANAGE_SYSTEM)


# ---------- Analytics ----------
@router.post("/analytics")
def generate_analytics(
    request: Request, req: GenerateAnalyticsRequest | None = None, user: User = Depends(_view)
) -> dict[str, Any]:
    req = req or GenerateAnalyticsRequest()
    with db_conn() as conn, audit_failures(conn, request, "generate", "analytics", user=user):
        snap = AdminService().generate_analytics(conn, req.period, req.date)
        audit(conn, request, "generate", "analytics", user=user, resource_id=snap.id)
        return snap.to_dict()


@router.get("/analytics")
def get_analytics(period: str = "daily", _: User = Depends(_view)) -> dict[str, Any]:
    with db_conn() as conn:
        return AdminService().get_analytics(conn, period).to_dict()


@router.get("/analytics/history")
def list_analytics(
    period: str | None = None, limit: int = Query(default=30, ge=1, le=365), _: User = Depends(_view)
) -> dict[str, Any]:
    with db_conn() as conn:
        return {"snapshots": [s.to_dict() for s in AdminService().list_analytics(conn, period, limit)]}


@router.get("/analytics/matches-over-time")
def matches_over_time(days: int = Query(default=30, ge=1, le=365), _: User = Depends(_view)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"days": AdminService().matches_over_time(conn, days)}


@router.get("/analytics/registration-trends")
def registration_trends(months: int = Query(default=6, ge=1, le=36), _: User = Depends(_view)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"months": AdminService().registration_trends(conn, months)}


@router.get("/analytics/tournament-progress")
def tournament_progress(_: User = Depends(_view)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"tournaments": AdminService().tournament_progress(conn)}


# ---------- Audit & security ----------
@router.get("/audit-logs")
def audit_logs(
    user_id: str | None = None,
    action: str | None = None,
    resource: str | None = None,
    success: bool | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    _: User = Depends(_system),
) -> dict[str, Any]:
    with db_conn() as conn:
        logs = AdminService().get_audit_logs(
            conn, user_id=user_id, action=action, resource=resource, success=success,
            start=start, end=end, limit=limit,
        )
        return {"logs": [log.to_dict() for log in logs]}


@router.get("/security")
def security_summary(range: str = "7d", _: User = Depends(_system)) -> dict[str, Any]:
    with db_conn() as conn:
        return AdminService().security_summary(conn, range)


# ---------- System ----------
@router.post("/system-health")
def record_system_health(req: SystemHealthRequest, request: Request, user: User = Depends(_system)) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "record", "system_health", user=user):
        health = AdminService().record_system_health(conn, **req.model_dump())
        audit(conn, request, "record", "system_health", user=user, resource_id=health.id)
        return health.to_dict()


@router.get("/system-health")
def get_system_health(_: User = Depends(_system)) -> dict[str, Any]:
    with db_conn() as conn:
        health = AdminService().get_system_health(conn)
        return {"health": health.to_dict() if health else None}


@router.post("/broadcast")
def broadcast(req: BroadcastRequest, request: Request, user: User = Depends(_system)) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "broadcast", "notification", user=user):
        sent = NotificationService().broadcast_system(conn, req.title, req.body, role=req.role)
        audit(conn, request, "broadcast", "notification", user=user, details={"sent": sent})
        return {"sent": sent}


@router.post("/sample-data")
def create_sample_data(request: Request, user: User = Depends(_system)) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "create", "sample_data", user=user):
        counts = AdminService().create_sample_data(conn)
        audit(conn, request, "create", "sample_data", user=user, details=counts)
        return {"created": counts}


@router.delete("/sample-data")
def clear_sample_data(request: Request, user: User = Depends(_system)) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "delete", "sample_data", user=user):
        counts = AdminService().clear_sample_data(conn)
        audit(conn, request, "delete", "sample_data", user=user, details=counts)
        return {"deleted": counts}
