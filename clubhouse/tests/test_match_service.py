"""
Tests for the live match service: lifecycle, officiating rights, event
recording, automatic second-yellow reds and undo.
"""
from __future__ import annotations

import pytest

from clubhouse.persistence.db import get_connection, init_db, set_db_path
from clubhouse.persistence.repositories import NotificationRepository, UserRepository
from clubhouse.services.club_service import ClubService
from clubhouse.services.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationFailedError,
)
from clubhouse.services.event_validation import EventDraft
from clubhouse.services.match_service import MatchService


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "matches_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def service():
    return MatchService()


@pytest.fixture
def setup(db_conn):
    """Two teams of one club with two players each, plus a referee and an outsider."""
    users = UserRepository()
    clubs = ClubService()
    owner = users.create(db_conn, "owner", role="club_admin")
    club = clubs.create_club(db_conn, owner, "Eastgate")
    home = clubs.create_team(db_conn, owner, club.id, "Eastgate Reds")
    away = clubs.create_team(db_conn, owner, club.id, "Eastgate Blues")
    players = {}
    for name, team, number in (("h1", home, 9), ("h2", home, 10), ("a1", away, 4), ("a2", away, 7)):
        players[name] = users.create(db_conn, name)
        clubs.add_team_member(db_conn, owner, team.id, players[name].id, jersey_number=number)
    return {
        "owner": owner,
        "home": home,
        "away": away,
        "players": players,
        "referee": users.create(db_conn, "ref", role="referee"),
        "outsider": users.create(db_conn, "outsider", role="coach"),
    }


@pytest.fixture
def match(db_conn, service, setup):
    return service.create_match(
        db_conn, setup["owner"], setup["home"].id, setup["away"].id,
        venue="Main pitch", referee_id=setup["referee"].id,
    )


@pytest.fixture
def live(db_conn, service, setup, match):
    return service.start_match(db_conn, setup["owner"], match.id)


def _pid(setup, name):
    return setup["players"][name].id


def test_create_match_rules(db_conn, service, setup):
    with pytest.raises(ServiceError):
        service.create_match(db_conn, setup["owner"], setup["home"].id, setup["home"].id)
    with pytest.raises(PermissionDeniedError):
        service.create_match(db_conn, setup["outsider"], setup["home"].id, setup["away"].id)
    with pytest.raises(NotFoundError):
        service.create_match(db_conn, setup["owner"], setup["home"].id, "nope")


def test_match_scheduled_notifies_rosters(db_conn, setup, match):
    notes = NotificationRepository().list_by_user(db_conn, _pid(setup, "a1"))
    assert any(n.title == "New Match Scheduled" for n in notes)


def test_officiating_rights(db_conn, service, setup, match):
    assert service.can_officiate(db_conn, setup["referee"], match)
    assert service.can_officiate(db_conn, setup["owner"], match)
    assert not service.can_officiate(db_conn, setup["outsider"], match)
    assert not service.can_officiate(db_conn, setup["players"]["h1"], match)
    with pytest.raises(PermissionDeniedError):
        service.start_match(db_conn, setup["outsider"], match.id)


def test_full_lifecycle(db_conn, service, setup, match):
    ref = setup["referee"]
    started = service.start_match(db_conn, ref, match.id)
    assert started.status == "in_progress"
    assert started.started_at is not None
    service.record_event(db_conn, ref, match.id, EventDraft("goal", 20, setup["home"].id, _pid(setup, "h1")))
    assert service.start_halftime(db_conn, ref, match.id).status == "halftime"
    with pytest.raises(InvalidTransitionError):
        service.start_halftime(db_conn, ref, match.id)
    assert service.resume_match(db_conn, ref, match.id).status == "in_progress"
    ended = service.end_match(db_conn, ref, match.id)
    assert ended.status == "completed"
    assert (ended.home_score, ended.away_score) == (1, 0)
    assert ended.winner_team_id == setup["home"].id
    types = [e.type for e in service.timeline(db_conn, match.id)]
    assert types[0] == "match_start"
    assert types[-1] == "match_end"
    assert "halftime_start" in types and "halftime_end" in types


def test_friendly_draw_has_no_winner(db_conn, service, setup, live):
    ended = service.end_match(db_conn, setup["owner"], live.id)
    assert ended.winner_team_id is None


def test_cannot_record_before_kickoff(db_conn, service, setup, match):
    with pytest.raises(InvalidTransitionError):
        service.record_event(db_conn, setup["owner"], match.id, EventDraft("corner", 3, setup["home"].id))


def test_invalid_event_raises_with_result(db_conn, service, setup, live):
    with pytest.raises(ValidationFailedError) as exc_info:
        service.record_event(db_conn, setup["owner"], live.id, EventDraft("goal", 20, setup["home"].id, _pid(setup, "a1")))
    assert not exc_info.value.result.is_valid
    assert service.get_match(db_conn, live.id).home_score == 0


def test_record_returns_warnings(db_conn, service, setup, live):
    created, result = service.record_event(
        db_conn, setup["owner"], live.id, EventDraft("yellow_card", 15, setup["away"].id, _pid(setup, "a1"))
    )
    assert [e.type for e in created] == ["yellow_card"]
    assert "Card type not specified" in result.warnings


def test_own_goal_counts_for_opponent(db_conn, service, setup, live):
    service.record_event(db_conn, setup["owner"], live.id, EventDraft("own_goal", 33, setup["away"].id, _pid(setup, "a2")))
    m = service.get_match(db_conn, live.id)
    assert (m.home_score, m.away_score) == (1, 0)


def test_second_yellow_adds_red_and_undo_removes_it(db_conn, service, setup, live):
    owner, away, a1 = setup["owner"], setup["away"].id, _pid(setup, "a1")
    service.record_event(db_conn, owner, live.id, EventDraft("yellow_card", 10, away, a1))
    created, _ = service.record_event(db_conn, owner, live.id, EventDraft("yellow_card", 50, away, a1))
    assert [e.type for e in created] == ["yellow_card", "red_card"]
    assert created[1].data["automatic"] is True

    # sent off: no further events for that player
    with pytest.raises(ValidationFailedError):
        service.record_event(db_conn, owner, live.id, EventDraft("foul", 55, away, a1))

    service.delete_event(db_conn, owner, live.id, created[0].id)
    remaining = [e.type for e in service.timeline(db_conn, live.id)]
    assert remaining.count("yellow_card") == 1
    assert "red_card" not in remaining


def test_undo_first_yellow_lifts_automatic_red(db_conn, service, setup, live):
    owner, home, h1 = setup["owner"], setup["home"].id, _pid(setup, "h1")
    first, _ = service.record_event(db_conn, owner, live.id, EventDraft("yellow_card", 10, home, h1))
    second, _ = service.record_event(db_conn, owner, live.id, EventDraft("yellow_card", 30, home, h1))
    assert [e.type for e in second] == ["yellow_card", "red_card"]

    service.delete_event(db_conn, owner, live.id, first[0].id)
    remaining = [e.type for e in service.timeline(db_conn, live.id)]
    assert remaining.count("yellow_card") == 1
    assert "red_card" not in remaining

    created, result = service.record_event(db_conn, owner, live.id, EventDraft("shot", 35, home, h1))
    assert result.is_valid
    assert created[0].type == "shot"


def test_undo_yellow_keeps_manual_red(db_conn, service, setup, live):
    owner, away, a2 = setup["owner"], setup["away"].id, _pid(setup, "a2")
    yellow, _ = service.record_event(db_conn, owner, live.id, EventDraft("yellow_card", 10, away, a2))
    service.record_event(
        db_conn, owner, live.id, EventDraft("red_card", 20, away, a2, data={"reason": "violent conduct"})
    )
    service.delete_event(db_conn, owner, live.id, yellow[0].id)
    assert [e.type for e in service.timeline(db_conn, live.id)].count("red_card") == 1


def test_undo_goal_recomputes_score(db_conn, service, setup, live):
    owner, home = setup["owner"], setup["home"].id
    created, _ = service.record_event(db_conn, owner, live.id, EventDraft("goal", 12, home, _pid(setup, "h1")))
    service.record_event(db_conn, owner, live.id, EventDraft("goal", 40, home, _pid(setup, "h2")))
    assert service.get_match(db_conn, live.id).home_score == 2
    after = service.delete_event(db_conn, owner, live.id, created[0].id)
    assert after.home_score == 1


def test_period_markers_cannot_be_undone(db_conn, service, setup, live):
    start_event = service.timeline(db_conn, live.id)[0]
    with pytest.raises(ServiceError):
        service.delete_event(db_conn, setup["owner"], live.id, start_event.id)
    with pytest.raises(NotFoundError):
        service.delete_event(db_conn, setup["owner"], live.id, "missing")


def test_goal_notifies_both_rosters(db_conn, service, setup, live):
    service.record_event(db_conn, setup["owner"], live.id, EventDraft("goal", 12, setup["home"].id, _pid(setup, "h1")))
    titles = [n.title for n in NotificationRepository().list_by_user(db_conn, _pid(setup, "a2"))]
    assert "Goal!" in titles


def test_postpone_and_reschedule(db_conn, service, setup, match):
    owner = setup["owner"]
    assert service.postpone_match(db_conn, owner, match.id).status == "postponed"
    with pytest.raises(InvalidTransitionError):
        service.start_match(db_conn, owner, match.id)
    assert service.reschedule_match(db_conn, owner, match.id).status == "scheduled"
    assert service.cancel_match(db_conn, owner, match.id).status == "cancelled"
    with pytest.raises(InvalidTransitionError):
        service.reschedule_match(db_conn, owner, match.id)


def test_live_state_and_views(db_conn, service, setup, live):
    service.record_event(db_conn, setup["owner"], live.id, EventDraft("goal", 64, setup["home"].id, _pid(setup, "h1")))
    state = service.live_state(db_conn, live.id)
    assert state["type"] == "live_update"
    assert state["home_team_name"] == "Eastgate Reds"
    assert state["minute"] == 64
    assert state["match"]["home_score"] == 1
    assert state["stats"]["home"]["goals"] == 1
    players = {p["player_id"]: p for p in service.player_stats(db_conn, live.id)}
    assert players[_pid(setup, "h1")]["goals"] == 1


def test_team_stats_after_completion(db_conn, service, setup, live):
    service.record_event(db_conn, setup["owner"], live.id, EventDraft("goal", 5, setup["away"].id, _pid(setup, "a1")))
    service.end_match(db_conn, setup["owner"], live.id)
    stats = service.team_stats(db_conn, setup["away"].id)
    assert stats["wins"] == 1
    assert stats["form"] == ["W"]
    report = service.match_report(db_conn, live.id)
    assert report["score"] == "0 - 1"


def test_player_season_stats_over_completed_matches(db_conn, service, setup, live):
    owner, home, h1, h2 = setup["owner"], setup["home"].id, _pid(setup, "h1"), _pid(setup, "h2")
    service.record_event(db_conn, owner, live.id, EventDraft("goal", 30, home, h1, h2))
    service.record_event(db_conn, owner, live.id, EventDraft("substitution", 60, home, h2, h1))
    service.end_match(db_conn, owner, live.id)

    # a second, still live match is not counted
    other = service.create_match(db_conn, owner, setup["home"].id, setup["away"].id)
    service.start_match(db_conn, owner, other.id)
    service.record_event(db_conn, owner, other.id, EventDraft("goal", 10, home, h1))

    stats = service.player_season_stats(db_conn, h1)
    assert stats["appearances"] == 1
    assert stats["goals"] == 1
    assert stats["minutes_played"] == 60
    assert stats["last_five"][0]["result"] == "W"
    assert service.player_season_stats(db_conn, h2)["assists"] == 1
    assert service.player_season_stats(db_conn, _pid(setup, "a2"))["appearances"] == 0
    with pytest.raises(NotFoundError):
        service.player_season_stats(db_conn, "ghost")
