"""
Tests for match event validation: errors reject, warnings and suggestions inform.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from clubhouse.models import Match
from clubhouse.services.event_validation import MAX_MINUTE, EventDraft, validate_event


@pytest.fixture
def match():
    return Match(
        id="m1",
        home_team_id="home",
        away_team_id="away",
        status="in_progress",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def rosters():
    return {"home": {"h1", "h2", "h3"}, "away": {"a1", "a2"}}


def test_valid_goal_with_details():
    draft = EventDraft("goal", 23, "home", "h1", data={"goal_type": "header", "location": "six_yard_box"})
    result = validate_event(draft)
    assert result.is_valid
    assert result.warnings == []
    assert result.suggestions == []


def test_goal_without_details_warns_and_suggests():
    result = validate_event(EventDraft("goal", 23, "home", "h1"))
    assert result.is_valid
    assert "Goal type not specified" in result.warnings
    assert any("goal location" in s for s in result.suggestions)


def test_missing_team():
    result = validate_event(EventDraft("corner", 10, None))
    assert not result.is_valid
    assert "Missing required fields: event type, team" in result.errors


def test_unknown_type():
    result = validate_event(EventDraft("bicycle_kick", 10, "home", "h1"))
    assert result.errors == ["Unknown event type: bicycle_kick"]


def test_period_markers_rejected():
    result = validate_event(EventDraft("match_end", 90, "home"))
    assert not result.is_valid
    assert "automatically" in result.errors[0]


@pytest.mark.parametrize("minute", [-1, MAX_MINUTE + 1])
def test_minute_out_of_range(minute):
    result = validate_event(EventDraft("corner", minute, "home"))
    assert not result.is_valid
    assert any("Invalid minute" in e for e in result.errors)


@pytest.mark.parametrize("kind", ["goal", "own_goal", "yellow_card", "red_card", "penalty_miss", "injury"])
def test_player_required(kind):
    result = validate_event(EventDraft(kind, 30, "home"))
    assert any(e.startswith("Player ID is required") for e in result.errors)


def test_team_events_need_no_player():
    for kind in ("corner", "offside", "shot", "foul"):
        assert validate_event(EventDraft(kind, 30, "home")).is_valid


def test_assist_needs_both_players():
    result = validate_event(EventDraft("assist", 30, "home", "h2"))
    assert "Both player and secondary player IDs are required for assists" in result.errors


def test_substitution_rules():
    assert not validate_event(EventDraft("substitution", 60, "home", "h2")).is_valid
    same = validate_event(EventDraft("substitution", 60, "home", "h2", "h2"))
    assert "A player cannot replace themselves" in same.errors
    assert validate_event(EventDraft("substitution", 60, "home", "h3", "h2")).is_valid


def test_card_and_injury_warnings():
    card = validate_event(EventDraft("yellow_card", 40, "away", "a1"))
    assert "Card type not specified" in card.warnings
    with_reason = validate_event(EventDraft("yellow_card", 40, "away", "a1", data={"reason": "dissent"}))
    assert with_reason.warnings == []
    injury = validate_event(EventDraft("injury", 40, "away", "a1"))
    assert "Injury severity not specified" in injury.warnings


def test_shot_suggestion():
    result = validate_event(EventDraft("shot_on_target", 12, "home", "h1"))
    assert result.is_valid
    assert any("shot type" in s for s in result.suggestions)


def test_team_not_in_match(match):
    result = validate_event(EventDraft("corner", 5, "other"), match=match)
    assert "Team is not playing in this match" in result.errors


def test_player_not_on_roster(match, rosters):
    result = validate_event(EventDraft("goal", 5, "home", "a1"), match=match, rosters=rosters)
    assert "Player a1 is not on the team roster" in result.errors


def test_roster_checks_secondary_player(match, rosters):
    result = validate_event(EventDraft("substitution", 60, "away", "a2", "h1"), match=match, rosters=rosters)
    assert result.errors == ["Player h1 is not on the team roster"]


def test_sent_off_player_rejected(match, rosters):
    result = validate_event(
        EventDraft("foul", 70, "home", "h1"), match=match, rosters=rosters, sent_off={"h1"}
    )
    assert "Player h1 has already been sent off" in result.errors


def test_result_to_dict():
    d = validate_event(EventDraft("goal", 5, "home")).to_dict()
    assert d["is_valid"] is False
    assert set(d) == {"is_valid", "errors", "warnings", "suggestions"}
