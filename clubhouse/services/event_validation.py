"""
Validation of referee-entered match events.
Errors reject the event; warnings and suggestions are returned to the client as hints.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from clubhouse.models import Match, MatchEventType, PERIOD_MARKERS

MIN_MINUTE = 0
MAX_MINUTE = 120

_NEEDS_PLAYER = {
    MatchEventType.GOAL.value: "goals",
    MatchEventType.PENALTY_GOAL.value: "goals",
    MatchEventType.OWN_GOAL.value: "goals",
    MatchEventType.PENALTY_MISS.value: "penalties",
    MatchEventType.YELLOW_CARD.value: "cards",
    MatchEventType.RED_CARD.value: "cards",
    MatchEventType.INJURY.value: "injuries",
}


@dataclass
class EventDraft:
    """
    An event as submitted. For assists player_id is the assister and
    secondary_player_id the scorer; for substitutions player_id comes on and
    secondary_player_id goes off.
    """
    type: str
    minute: int
    team_id: str | None = None
    player_id: str | None = None
    secondary_player_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class EventValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
        }


def validate_event(
    draft: EventDraft,
    match: Match | None = None,
    rosters: dict[str, set[str]] | None = None,
    sent_off: set[str] | None = None,
) -> EventValidationResult:
    """
    Check a draft event. Field rules always apply; match, rosters (team id ->
    active player ids) and sent_off (players already shown a red card) add the
    context checks when given.
    """
    result = EventValidationResult()
    errors, warnings, suggestions = result.errors, result.warnings, result.suggestions

    if not draft.type or not draft.team_id:
        errors.append("Missing required fields: event type, team")
    if draft.type:
        try:
            kind = MatchEventType(draft.type).value
        except ValueError:
            errors.append(f"Unknown event type: {draft.type}")
            return result
        if kind in PERIOD_MARKERS:
            errors.append("Period markers are recorded automatically by the match lifecycle")
            return result
    if draft.minute is None or not MIN_MINUTE <= draft.minute <= MAX_MINUTE:
        errors.append(f"Invalid minute value. Must be between {MIN_MINUTE} and {MAX_MINUTE}")

    t = MatchEventType(draft.type).value if draft.type else ""
    data = draft.data or {}
    if t in _NEEDS_PLAYER and not draft.player_id:
        errors.append(f"Player ID is required for {_NEEDS_PLAYER[t]}")
    if t == MatchEventType.ASSIST and (not draft.player_id or not draft.secondary_player_id):
        errors.append("Both player and secondary player IDs are required for assists")
    if t == MatchEventType.SUBSTITUTION:
        if not draft.player_id or not draft.secondary_player_id:
            errors.append("Both incoming and outgoing player IDs are required for substitutions")
        elif draft.player_id == draft.secondary_player_id:
            errors.append("A player cannot replace themselves")

    if t in (MatchEventType.GOAL, MatchEventType.PENALTY_GOAL) and not data.get("goal_type"):
        warnings.append("Goal type not specified")
    if t in (MatchEventType.YELLOW_CARD, MatchEventType.RED_CARD) and not (data.get("card_type") or data.get("reason")):
        warnings.append("Card type not specified")
    if t == MatchEventType.INJURY and not data.get("severity"):
        warnings.append("Injury severity not specified")

    if t == MatchEventType.GOAL and not data.get("location"):
        suggestions.append("Consider adding goal location for better statistics")
    if t in (MatchEventType.SHOT, MatchEventType.SHOT_ON_TARGET) and not data.get("shot_type"):
        suggestions.append("Consider adding shot type for better analysis")

    if match is not None and draft.team_id and match.side_of(draft.team_id) is None:
        errors.append("Team is not playing in this match")
        return result

    if rosters is not None and draft.team_id:
        roster = rosters.get(draft.team_id, set())
        for pid in (draft.player_id, draft.secondary_player_id):
            if pid and pid not in roster:
                errors.append(f"Player {pid} is not on the team roster")

    if sent_off:
        # includes the outgoing player of a substitution
        involved = [draft.player_id, draft.secondary_player_id]
        for pid in involved:
            if pid and pid in sent_off:
                errors.append(f"Player {pid} has already been sent off")

    return result
