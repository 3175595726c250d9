"""
Shared request dependencies: DB connection, current user, permission checks, audit.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Callable, Generator

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clubhouse.auth import decode_token
from clubhouse.models import User, UserStatus
from clubhouse.permissions import Permission, has_permission
from clubhouse.persistence import UserRepository, get_connection
from clubhouse.services.admin_service import AdminService
from clubhouse.services.errors import ServiceError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@contextmanager
def db_conn() -> Generator[sqlite3.Connection, None, None]:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> User:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Login required")
    user_id = decode_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    with db_conn() as conn:
        user = UserRepository().get(conn, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User no longer exists")
    if user.status == UserStatus.SUSPENDED.value:
        raise HTTPException(status_code=403, detail="Account suspended")
    return user


def require_permission(permission: Permission) -> Callable[..., User]:
    """Dependency factory: the current user, provided their role grants permission."""

    def _check(request: Request, user: User = Depends(get_current_user)) -> User:
        if not has_permission(user.role, permission):
            logger.warning("User %s (%s) lacks %s", user.id, user.role, permission.value)
            with db_conn() as conn:
                audit(
                    conn, request, "access", request.url.path, user=user,
                    success=False, error_message=f"Missing permission: {permission.value}",
                )
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission.value}")
        return user

    return _check


def audit(
    conn: sqlite3.Connection,
    request: Request,
    action: str,
    resource: str,
    user: User | None = None,
    resource_id: str | None = None,
    details: dict[str, Any] | None = None,
    success: bool = True,
    error_message: str | None = None,
    username: str | None = None,
) -> None:
    AdminService().log_audit_event(
        conn,
        action,
        resource,
        user=user,
        username=username,
        resource_id=resource_id,
        details=details,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        success=success,
        error_message=error_message,
    )


@contextmanager
def audit_failures(
    conn: sqlite3.Connection,
    request: Request,
    action: str,
    resource: str,
    user: User | None = None,
    resource_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Generator[None, None, None]:
    """Write a failed audit entry for any ServiceError raised in the block, then re-raise it."""
    try:
        yield
    except ServiceError as exc:
        audit(
            conn, request, action, resource, user=user, resource_id=resource_id, details=details,
            success=False, error_message=str(exc),
        )
        raise
