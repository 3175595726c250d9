"""
Deterministic match and season statistics.
Read-only: consumes matches and their event timelines, returns plain dicts.
No persistence.
"""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Iterable

from clubhouse.models import Match, MatchEvent, MatchEventType, MatchStatus, PERIOD_MARKERS

DEFAULT_MATCH_MINUTES = 90

WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0

_KEY_MOMENT_TYPES = frozenset(t.value for t in (
    MatchEventType.GOAL,
    MatchEventType.PENALTY_GOAL,
    MatchEventType.OWN_GOAL,
    MatchEventType.PENALTY_MISS,
    MatchEventType.YELLOW_CARD,
    MatchEventType.RED_CARD,
    MatchEventType.SUBSTITUTION,
    MatchEventType.INJURY,
))

# Attempts that count as shots; the first three were on target
_ON_TARGET = frozenset(t.value for t in (MatchEventType.SHOT_ON_TARGET, MatchEventType.GOAL, MatchEventType.PENALTY_GOAL))
_SHOTS = _ON_TARGET | {MatchEventType.SHOT.value, MatchEventType.PENALTY_MISS.value}


def _empty_side() -> dict[str, int]:
    return {
        "goals": 0,
        "assists": 0,
        "own_goals": 0,
        "shots": 0,
        "shots_on_target": 0,
        "corners": 0,
        "fouls": 0,
        "offsides": 0,
        "yellow_cards": 0,
        "red_cards": 0,
    }


def _side(match: Match, team_id: str | None) -> str | None:
    return match.side_of(team_id) if team_id else None


def compute_score(match: Match, events: Iterable[MatchEvent]) -> tuple[int, int]:
    """Score implied by the timeline: goals for the scorer's side, own goals for the opponent."""
    home = away = 0
    for e in events:
        side = _side(match, e.team_id)
        if side is None:
            continue
        if e.type in (MatchEventType.GOAL, MatchEventType.PENALTY_GOAL):
            if side == "home":
                home += 1
            else:
                away += 1
        elif e.type == MatchEventType.OWN_GOAL:
            if side == "home":
                away += 1
            else:
                home += 1
    return home, away


def compute_match_stats(match: Match, events: list[MatchEvent]) -> dict[str, Any]:
    """Per-side counters plus match totals. Shots include goals and missed penalties."""
    sides = {"home": _empty_side(), "away": _empty_side()}
    for e in events:
        side = _side(match, e.team_id)
        if side is None or e.type in PERIOD_MARKERS:
            continue
        s = sides[side]
        t = e.type
        if t in _SHOTS:
            s["shots"] += 1
        if t in _ON_TARGET:
            s["shots_on_target"] += 1
        if t == MatchEventType.ASSIST:
            s["assists"] += 1
        elif t in (MatchEventType.GOAL, MatchEventType.PENALTY_GOAL) and e.secondary_player_id:
            s["assists"] += 1
        if t == MatchEventType.OWN_GOAL:
            s["own_goals"] += 1
        elif t == MatchEventType.CORNER:
            s["corners"] += 1
        elif t == MatchEventType.FOUL:
            s["fouls"] += 1
        elif t == MatchEventType.OFFSIDE:
            s["offsides"] += 1
        elif t == MatchEventType.YELLOW_CARD:
            s["yellow_cards"] += 1
        elif t == MatchEventType.RED_CARD:
            s["red_cards"] += 1
    home_goals, away_goals = compute_score(match, events)
    sides["home"]["goals"] = home_goals
    sides["away"]["goals"] = away_goals
    h, a = sides["home"], sides["away"]
    return {
        "home": h,
        "away": a,
        "totals": {
            "goals": home_goals + away_goals,
            "cards": h["yellow_cards"] + h["red_cards"] + a["yellow_cards"] + a["red_cards"],
            "shots": h["shots"] + a["shots"],
            "fouls": h["fouls"] + a["fouls"],
            "corners": h["corners"] + a["corners"],
            "offsides": h["offsides"] + a["offsides"],
        },
    }


def compute_player_match_stats(
    match: Match, events: list[MatchEvent], match_minutes: int = DEFAULT_MATCH_MINUTES
) -> dict[str, dict[str, Any]]:
    """
    Per-player counters for one match, keyed by player id.
    minutes_played: full match unless a substitution or red card cuts it. A player
    brought on plays from that minute; one taken off or sent off stops there.
    """
    players: dict[str, dict[str, Any]] = {}
    came_on: dict[str, int] = {}
    went_off: dict[str, int] = {}

    def entry(player_id: str, team_id: str | None) -> dict[str, Any]:
        if player_id not in players:
            players[player_id] = {
                "player_id": player_id,
                "team_id": team_id,
                "goals": 0,
                "assists": 0,
                "own_goals": 0,
                "shots": 0,
                "shots_on_target": 0,
                "fouls": 0,
                "yellow_cards": 0,
                "red_cards": 0,
                "minutes_played": 0,
            }
        return players[player_id]

    for e in events:
        if e.type in PERIOD_MARKERS:
            continue
        t = e.type
        if t == MatchEventType.SUBSTITUTION:
            if e.player_id:
                entry(e.player_id, e.team_id)
                came_on[e.player_id] = e.minute
            if e.secondary_player_id:
                entry(e.secondary_player_id, e.team_id)
                went_off.setdefault(e.secondary_player_id, e.minute)
            continue
        if not e.player_id:
            continue
        p = entry(e.player_id, e.team_id)
        if t in (MatchEventType.GOAL, MatchEventType.PENALTY_GOAL):
            p["goals"] += 1
            if e.secondary_player_id:
                entry(e.secondary_player_id, e.team_id)["assists"] += 1
        elif t == MatchEventType.ASSIST:
            p["assists"] += 1
        elif t == MatchEventType.OWN_GOAL:
            p["own_goals"] += 1
        elif t == MatchEventType.FOUL:
            p["fouls"] += 1
        elif t == MatchEventType.YELLOW_CARD:
            p["yellow_cards"] += 1
        elif t == MatchEventType.RED_CARD:
            p["red_cards"] += 1
            went_off.setdefault(e.player_id, e.minute)
        if t in _SHOTS:
            p["shots"] += 1
        if t in _ON_TARGET:
            p["shots_on_target"] += 1

    for pid, p in players.items():
        start = came_on.get(pid, 0)
        end = min(went_off.get(pid, match_minutes), match_minutes)
        p["minutes_played"] = max(0, end - start)
    return players


def top_scorers(events: Iterable[MatchEvent], limit: int = 10) -> list[dict[str, Any]]:
    """Goals (own goals excluded) per player, most first; ties broken by player id."""
    goals: Counter[str] = Counter()
    team_of: dict[str, str | None] = {}
    for e in events:
        if e.type in (MatchEventType.GOAL, MatchEventType.PENALTY_GOAL) and e.player_id:
            goals[e.player_id] += 1
            team_of[e.player_id] = e.team_id
    ranked = sorted(goals.items(), key=lambda kv: (-kv[1], kv[0]))
    return [
        {"player_id": pid, "team_id": team_of[pid], "goals": n}
        for pid, n in ranked[:limit]
    ]


def match_result_for(match: Match, team_id: str) -> str | None:
    """'W', 'D' or 'L' for team_id in a completed match. A level score with a winner is a shootout result."""
    side = match.side_of(team_id)
    if side is None or match.status != MatchStatus.COMPLETED:
        return None
    own, other = (
        (match.home_score, match.away_score) if side == "home" else (match.away_score, match.home_score)
    )
    if own > other:
        return "W"
    if own < other:
        return "L"
    if match.winner_team_id:
        return "W" if match.winner_team_id == team_id else "L"
    return "D"


def _match_sort_key(m: Match) -> datetime:
    return m.ended_at or m.started_at or m.scheduled_at or m.created_at


def _is_played(m: Match) -> bool:
    return m.status == MatchStatus.COMPLETED and m.home_team_id is not None and m.away_team_id is not None


def compute_team_season_stats(team_id: str, matches: Iterable[Match]) -> dict[str, Any]:
    """Record, goals and form for one team over completed matches."""
    played = sorted(
        (m for m in matches if _is_played(m) and m.side_of(team_id)),
        key=_match_sort_key,
    )
    splits = {
        "home": {"played": 0, "wins": 0, "draws": 0, "losses": 0, "goals_for": 0, "goals_against": 0},
        "away": {"played": 0, "wins": 0, "draws": 0, "losses": 0, "goals_for": 0, "goals_against": 0},
    }
    results: list[str] = []
    clean_sheets = 0
    for m in played:
        side = m.side_of(team_id)
        result = match_result_for(m, team_id)
        if side is None or result is None:
            continue
        gf, ga = (m.home_score, m.away_score) if side == "home" else (m.away_score, m.home_score)
        results.append(result)
        s = splits[side]
        s["played"] += 1
        s["goals_for"] += gf
        s["goals_against"] += ga
        s[{"W": "wins", "D": "draws", "L": "losses"}[result]] += 1
        if ga == 0:
            clean_sheets += 1
    n = len(played)
    wins = results.count("W")
    draws = results.count("D")
    losses = results.count("L")
    gf_total = splits["home"]["goals_for"] + splits["away"]["goals_for"]
    ga_total = splits["home"]["goals_against"] + splits["away"]["goals_against"]
    return {
        "team_id": team_id,
        "played": n,
        "wins": wins,
        "draws": draws,
        "losses": losses,
        "goals_for": gf_total,
        "goals_against": ga_total,
        "goal_difference": gf_total - ga_total,
        "points": wins * WIN_POINTS + draws * DRAW_POINTS + losses * LOSS_POINTS,
        "win_rate": round(100 * wins / n, 1) if n else 0.0,
        "clean_sheets": clean_sheets,
        "goals_per_match": round(gf_total / n, 2) if n else 0.0,
        "form": list(reversed(results[-5:])),
        "home": splits["home"],
        "away": splits["away"],
    }


_PLAYER_TOTALS = (
    "goals",
    "assists",
    "own_goals",
    "shots",
    "shots_on_target",
    "fouls",
    "yellow_cards",
    "red_cards",
    "minutes_played",
)


def compute_player_season_stats(
    player_id: str,
    matches: Iterable[Match],
    events_by_match: dict[str, list[MatchEvent]],
    match_minutes: int = DEFAULT_MATCH_MINUTES,
) -> dict[str, Any]:
    """
    One player's totals over completed matches, built from the per-match lines.
    A match counts as an appearance when the player is named on one of its
    events. Per-90 rates use minutes played; last_five is newest first.
    """
    totals = {key: 0 for key in _PLAYER_TOTALS}
    recent: list[dict[str, Any]] = []
    for m in sorted((m for m in matches if _is_played(m)), key=_match_sort_key):
        line = compute_player_match_stats(m, events_by_match.get(m.id, []), match_minutes).get(player_id)
        if line is None:
            continue
        for key in _PLAYER_TOTALS:
            totals[key] += line[key]
        recent.append({
            "match_id": m.id,
            "team_id": line["team_id"],
            "result": match_result_for(m, line["team_id"]) if line["team_id"] else None,
            "goals": line["goals"],
            "assists": line["assists"],
            "minutes_played": line["minutes_played"],
        })
    appearances = len(recent)
    minutes = totals["minutes_played"]

    def per_match(n: int) -> float:
        return round(n / appearances, 2) if appearances else 0.0

    def per_90(n: int) -> float:
        return round(90 * n / minutes, 2) if minutes else 0.0

    return {
        "player_id": player_id,
        "appearances": appearances,
        **totals,
        "goal_contributions": totals["goals"] + totals["assists"],
        "goals_per_match": per_match(totals["goals"]),
        "assists_per_match": per_match(totals["assists"]),
        "minutes_per_match": round(minutes / appearances, 1) if appearances else 0.0,
        "goals_per_90": per_90(totals["goals"]),
        "assists_per_90": per_90(totals["assists"]),
        "shot_accuracy": round(100 * totals["shots_on_target"] / totals["shots"], 1) if totals["shots"] else 0.0,
        "last_five": list(reversed(recent[-5:])),
    }


def compute_standings(team_ids: list[str], matches: Iterable[Match]) -> list[dict[str, Any]]:
    """
    League table: 3 points a win, 1 a draw. Every team in team_ids is listed even
    without a result. Sorted by points, goal difference, goals for, then team id.
    Scores decide results here; shootouts do not award extra points.
    """
    table: dict[str, dict[str, Any]] = {
        tid: {
            "team_id": tid, "played": 0, "wins": 0, "draws": 0, "losses": 0,
            "goals_for": 0, "goals_against": 0, "goal_difference": 0, "points": 0,
        }
        for tid in team_ids
    }
    for m in matches:
        if not _is_played(m) or m.home_team_id not in table or m.away_team_id not in table:
            continue
        home, away = table[m.home_team_id], table[m.away_team_id]
        for row, gf, ga in ((home, m.home_score, m.away_score), (away, m.away_score, m.home_score)):
            row["played"] += 1
            row["goals_for"] += gf
            row["goals_against"] += ga
            row["goal_difference"] = row["goals_for"] - row["goals_against"]
            if gf > ga:
                row["wins"] += 1
                row["points"] += WIN_POINTS
            elif gf == ga:
                row["draws"] += 1
                row["points"] += DRAW_POINTS
            else:
                row["losses"] += 1
                row["points"] += LOSS_POINTS
    rows = sorted(
        table.values(),
        key=lambda r: (-r["points"], -r["goal_difference"], -r["goals_for"], r["team_id"]),
    )
    for i, r in enumerate(rows, start=1):
        r["position"] = i
    return rows


def match_duration_minutes(match: Match) -> int | None:
    """Whole minutes between kick-off and final whistle, None until both are known."""
    if match.started_at is None or match.ended_at is None:
        return None
    return int((match.ended_at - match.started_at).total_seconds() // 60)


def generate_match_report(
    match: Match,
    events: list[MatchEvent],
    team_names: dict[str, str] | None = None,
    match_minutes: int = DEFAULT_MATCH_MINUTES,
) -> dict[str, Any]:
    """Summary of a match: score line, stats, key moments, duration."""
    names = team_names or {}
    home_name = names.get(match.home_team_id or "", match.home_team_id or "TBD")
    away_name = names.get(match.away_team_id or "", match.away_team_id or "TBD")
    key_moments = [
        {
            "minute": e.minute,
            "type": e.type,
            "team_id": e.team_id,
            "player_id": e.player_id,
            "secondary_player_id": e.secondary_player_id,
        }
        for e in events
        if e.type in _KEY_MOMENT_TYPES
    ]
    return {
        "match_id": match.id,
        "status": match.status,
        "home_team": {"id": match.home_team_id, "name": home_name},
        "away_team": {"id": match.away_team_id, "name": away_name},
        "home_score": match.home_score,
        "away_score": match.away_score,
        "score": f"{match.home_score} - {match.away_score}",
        "winner_team_id": match.winner_team_id,
        "duration_minutes": match_duration_minutes(match),
        "stats": compute_match_stats(match, events),
        "player_stats": list(compute_player_match_stats(match, events, match_minutes).values()),
        "key_moments": key_moments,
        "event_count": sum(1 for e in events if e.type not in PERIOD_MARKERS),
    }
