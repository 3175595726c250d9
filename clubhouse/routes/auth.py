from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from clubhouse.auth import create_access_token, hash_password, verify_password
from clubhouse.deps import audit, db_conn, get_current_user
from clubhouse.models import User, UserStatus
from clubhouse.permissions import permissions_for
from clubhouse.persistence import UserRepository
from clubhouse.schemas import LoginRequest, SignupRequest

router = APIRouter(tags=["auth"])


def _session(user: User) -> dict[str, Any]:
    return {
        "user_id": user.id,
        "username": user.username,
        "role": user.role,
        "token": create_access_token(user.id, role=user.role),
    }


@router.post("/signup")
def signup(req: SignupRequest, request: Request) -> dict[str, Any]:
    """Create an account with role player. Passwords hashed, never stored plain."""
    with db_conn() as conn:
        user_repo = UserRepository()
        if user_repo.get_by_username(conn, req.username):
            raise HTTPException(status_code=400, detail="Username already taken")
        user = user_repo.create(
            conn, req.username, hash_password(req.password),
            display_name=req.display_name, email=req.email,
        )
        audit(conn, request, "signup", "user", user=user, resource_id=user.id)
        return _session(user)


@router.post("/login")
def login(req: LoginRequest, request: Request) -> dict[str, Any]:
    with db_conn() as conn:
        user_repo = UserRepository()
        user = user_repo.get_by_username(conn, req.username)
        if user is None or not verify_password(req.password, user.password_hash):
            audit(
                conn, request, "login", "auth", username=req.username, success=False,
                error_message="Invalid username or password",
            )
            raise HTTPException(status_code=401, detail="Invalid username or password")
        if user.status == UserStatus.SUSPENDED.value:
            audit(conn, request, "login", "auth", user=user, success=False, error_message="Account suspended")
            raise HTTPException(status_code=403, detail="Account suspended")
        user_repo.touch_activity(conn, user.id)
        audit(conn, request, "login", "auth", user=user)
        return _session(user)


@router.get("/me")
def me(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {
        "user": user.to_dict(),
        "permissions": sorted(p.value for p in permissions_for(user.role)),
    }
