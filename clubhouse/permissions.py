"""
Role → permission table. Roles are global (on the user); club-level rights are
checked separately by the services through club membership.
"""
from __future__ import annotations

from enum import Enum

from clubhouse.models import UserRole


class Permission(str, Enum):
    MANAGE_USERS = "manage_users"
    MANAGE_CLUBS = "manage_clubs"
    MANAGE_TEAMS = "manage_teams"
    MANAGE_PLAYERS = "manage_players"
    MANAGE_EVENTS = "manage_events"
    MANAGE_TOURNAMENTS = "manage_tournaments"
    MANAGE_PAYMENTS = "manage_payments"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_SYSTEM = "manage_system"


ROLE_PERMISSIONS: dict[str, frozenset[Permission]] = {
    UserRole.SUPER_ADMIN: frozenset(Permission),
    UserRole.CLUB_ADMIN: frozenset({
        Permission.MANAGE_CLUBS,
        Permission.MANAGE_TEAMS,
        Permission.MANAGE_PLAYERS,
        Permission.MANAGE_EVENTS,
        Permission.MANAGE_TOURNAMENTS,
        Permission.MANAGE_PAYMENTS,
        Permission.VIEW_ANALYTICS,
    }),
    UserRole.COACH: frozenset({
        Permission.MANAGE_TEAMS,
        Permission.MANAGE_PLAYERS,
        Permission.MANAGE_EVENTS,
        Permission.VIEW_ANALYTICS,
    }),
    UserRole.REFEREE: frozenset({Permission.MANAGE_EVENTS}),
    UserRole.PLAYER: frozenset(),
    UserRole.PARENT: frozenset(),
}


def permissions_for(role: str) -> frozenset[Permission]:
    try:
        return ROLE_PERMISSIONS[UserRole(role)]
    except ValueError:
        return frozenset()


def has_permission(role: str, permission: Permission | str) -> bool:
    """True if role grants permission. Unknown roles or permissions grant nothing."""
    try:
        perm = Permission(permission)
    except ValueError:
        return False
    return perm in permissions_for(role)


def is_super_admin(role: str) -> bool:
    return role == UserRole.SUPER_ADMIN.value
