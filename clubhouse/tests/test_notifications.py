"""
Tests for stored notifications: fan-out, read state and system broadcasts.
"""
from __future__ import annotations

import pytest

from clubhouse.persistence.db import get_connection, init_db, set_db_path
from clubhouse.persistence.repositories import UserRepository
from clubhouse.services.errors import NotFoundError, PermissionDeniedError
from clubhouse.services.notification_service import NotificationService, event_description, event_title


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "notifications_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def service():
    return NotificationService()


def test_event_text():
    assert event_title("penalty_goal") == "Goal!"
    assert event_title("corner") == "Match Event"
    assert event_title("not_a_type") == "Match Event"
    assert event_description("goal", "Sam") == "Sam scored!"
    assert event_description("substitution", "Ali", "Ben") == "Ben replaced by Ali"
    assert event_description("corner", description="Short corner") == "Short corner"


def test_notify_users_dedupes(db_conn, service):
    u = UserRepository().create(db_conn, "u1")
    assert service.notify_users(db_conn, [u.id, u.id], "system", "Hi", "Hello") == 1
    assert service.unread_count(db_conn, u.id) == 1


def test_mark_read_is_owner_only(db_conn, service):
    users = UserRepository()
    u1 = users.create(db_conn, "u1")
    u2 = users.create(db_conn, "u2")
    n = service.notify(db_conn, u1.id, "system", "Hi", "Hello")
    with pytest.raises(PermissionDeniedError):
        service.mark_read(db_conn, u2.id, n.id)
    with pytest.raises(NotFoundError):
        service.mark_read(db_conn, u1.id, "missing")
    assert service.mark_read(db_conn, u1.id, n.id).read_at is not None
    assert service.unread_count(db_conn, u1.id) == 0


def test_mark_all_read(db_conn, service):
    u = UserRepository().create(db_conn, "u1")
    for i in range(3):
        service.notify(db_conn, u.id, "system", f"n{i}", "body")
    assert service.mark_all_read(db_conn, u.id) == 3
    assert service.list_for_user(db_conn, u.id, unread_only=True) == []
    assert [n.title for n in service.list_for_user(db_conn, u.id)] == ["n2", "n1", "n0"]


def test_broadcast_skips_suspended_and_filters_role(db_conn, service):
    users = UserRepository()
    users.create(db_conn, "coach", role="coach")
    users.create(db_conn, "player")
    users.create(db_conn, "gone", status="suspended")
    assert service.broadcast_system(db_conn, "Maintenance", "Tonight at 10pm") == 2
    assert service.broadcast_system(db_conn, "Coaches", "Clinic", role="coach") == 1
