"""
Tests for calendar events and RSVPs.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from clubhouse.persistence.db import get_connection, init_db, set_db_path
from clubhouse.persistence.repositories import NotificationRepository, UserRepository
from clubhouse.services.club_service import ClubService
from clubhouse.services.errors import InvalidTransitionError, PermissionDeniedError, ServiceError
from clubhouse.services.schedule_service import ScheduleService


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "schedule_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def service():
    return ScheduleService()


@pytest.fixture
def setup(db_conn):
    users = UserRepository()
    clubs = ClubService()
    owner = users.create(db_conn, "owner", role="club_admin")
    club = clubs.create_club(db_conn, owner, "Westfield")
    team = clubs.create_team(db_conn, owner, club.id, "Westfield U10")
    player = users.create(db_conn, "kid")
    clubs.add_team_member(db_conn, owner, team.id, player.id)
    return {"owner": owner, "club": club, "team": team, "player": player}


def _soon(days=2):
    return datetime.now(timezone.utc) + timedelta(days=days)


def test_team_event_inherits_club_and_notifies(db_conn, service, setup):
    ev = service.create_event(db_conn, setup["owner"], "Training", _soon(), team_id=setup["team"].id)
    assert ev.club_id == setup["club"].id
    assert ev.status == "scheduled"
    titles = [n.title for n in NotificationRepository().list_by_user(db_conn, setup["player"].id)]
    assert "New practice" in titles


def test_create_event_validation(db_conn, service, setup):
    owner = setup["owner"]
    with pytest.raises(ServiceError):
        service.create_event(db_conn, owner, "Nowhere", _soon())
    with pytest.raises(ServiceError):
        service.create_event(db_conn, owner, "Party", _soon(), type="party", club_id=setup["club"].id)
    with pytest.raises(ServiceError):
        service.create_event(db_conn, owner, "Zero", _soon(), club_id=setup["club"].id, duration_minutes=0)
    with pytest.raises(PermissionDeniedError):
        service.create_event(db_conn, setup["player"], "Kickabout", _soon(), team_id=setup["team"].id)


def test_upcoming_for_user(db_conn, service, setup):
    owner, team = setup["owner"], setup["team"]
    service.create_event(db_conn, owner, "Past", _soon(-3), team_id=team.id)
    soon = service.create_event(db_conn, owner, "Next", _soon(1), team_id=team.id)
    cancelled = service.create_event(db_conn, owner, "Off", _soon(4), team_id=team.id)
    service.cancel_event(db_conn, owner, cancelled.id)
    assert [e.id for e in service.upcoming_for_user(db_conn, setup["player"].id)] == [soon.id]


def test_rsvp_and_complete_counts_going(db_conn, service, setup):
    ev = service.create_event(db_conn, setup["owner"], "Match day", _soon(), type="game", team_id=setup["team"].id)
    service.rsvp(db_conn, setup["player"], ev.id, "maybe")
    service.rsvp(db_conn, setup["player"], ev.id, "going", notes="bringing boots")
    with pytest.raises(ServiceError):
        service.rsvp(db_conn, setup["player"], ev.id, "perhaps")
    attendees = service.attendees(db_conn, ev.id)
    assert len(attendees) == 1
    assert attendees[0].status == "going"
    done = service.complete_event(db_conn, setup["owner"], ev.id)
    assert done.status == "completed"
    assert done.attendance == 1
    with pytest.raises(InvalidTransitionError):
        service.rsvp(db_conn, setup["player"], ev.id, "going")


def test_cancel_twice_rejected(db_conn, service, setup):
    ev = service.create_event(db_conn, setup["owner"], "Meeting", _soon(), type="meeting", club_id=setup["club"].id)
    service.cancel_event(db_conn, setup["owner"], ev.id)
    with pytest.raises(InvalidTransitionError):
        service.cancel_event(db_conn, setup["owner"], ev.id)
