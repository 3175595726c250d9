"""
Tests for the role permission table and token / password helpers.
"""
from __future__ import annotations

import pytest

from clubhouse.auth import create_access_token, decode_token, hash_password, verify_password
from clubhouse.permissions import Permission, has_permission, is_super_admin, permissions_for


def test_super_admin_has_everything():
    assert permissions_for("super_admin") == frozenset(Permission)
    assert is_super_admin("super_admin")
    assert not is_super_admin("club_admin")


@pytest.mark.parametrize(
    "role,permission,expected",
    [
        ("club_admin", Permission.MANAGE_PAYMENTS, True),
        ("club_admin", Permission.MANAGE_USERS, False),
        ("club_admin", Permission.MANAGE_SYSTEM, False),
        ("coach", Permission.MANAGE_EVENTS, True),
        ("coach", Permission.MANAGE_TOURNAMENTS, False),
        ("referee", Permission.MANAGE_EVENTS, True),
        ("referee", Permission.VIEW_ANALYTICS, False),
        ("player", Permission.MANAGE_EVENTS, False),
        ("parent", Permission.VIEW_ANALYTICS, False),
    ],
)
def test_role_table(role, permission, expected):
    assert has_permission(role, permission) is expected


def test_permission_given_as_string():
    assert has_permission("coach", "view_analytics")


def test_unknown_role_or_permission_grants_nothing():
    assert permissions_for("wizard") == frozenset()
    assert not has_permission("wizard", Permission.MANAGE_EVENTS)
    assert not has_permission("super_admin", "fly")


def test_password_hashing():
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret!", None)


def test_token_round_trip():
    token = create_access_token("user-1", role="coach")
    assert decode_token(token) == "user-1"
    assert decode_token(token + "tampered") is None
    assert decode_token("not-a-jwt") is None
