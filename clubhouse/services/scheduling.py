"""
Deterministic fixture generation for tournaments.

Round robin: every team plays every other team exactly once. Rounds are N-1
(N even) or N (N odd). With an odd count a virtual BYE joins the rotation; the
team paired with BYE sits that round out and no fixture is produced for it.
Circle method: fix the first slot, rotate the others each round.

Single elimination: the field is padded to the next power of two with byes.
First-round pairings follow standard bracket order, so seed i meets seed
n-1-i and the top two seeds can only meet in the final. A team drawn against a
bye goes straight into its round-two slot.
"""
from __future__ import annotations

from typing import Any

# Sentinel for bye when number of teams is odd
BYE = "BYE"


def round_robin_pairings(team_ids: list[str]) -> list[tuple[int, str, str | None]]:
    """
    Generate round-robin pairings: (round_number, home_team_id, away_team_id).
    away_team_id is None when home_team_id has a bye (odd number of teams).
    Deterministic: same team list => same schedule.
    """
    if not team_ids:
        return []
    ids = list(team_ids)
    if len(ids) % 2 == 1:
        ids.append(BYE)
    n = len(ids)
    result: list[tuple[int, str, str | None]] = []
    order = list(range(n))
    for rnd in range(n - 1):
        for i in range(n // 2):
            home_id = ids[order[i]]
            away_id: str | None = ids[order[n - 1 - i]]
            if home_id == BYE:
                home_id, away_id = away_id, None
            elif away_id == BYE:
                away_id = None
            # Alternate home advantage for the fixed slot
            if i == 0 and rnd % 2 == 1 and away_id is not None:
                home_id, away_id = away_id, home_id
            result.append((rnd + 1, home_id, away_id))
        # Rotate: keep 0, then order[n-1], order[1], ..., order[n-2]
        order = [order[0]] + [order[n - 1]] + order[1 : n - 1]
    return result


def generate_round_robin_schedule(team_ids: list[str]) -> list[dict[str, Any]]:
    """
    Playable fixtures only: { "round_number", "home_team_id", "away_team_id" }.
    Byes produce no entry. No duplicate matchups; max one game per team per round.
    """
    return [
        {"round_number": r, "home_team_id": h, "away_team_id": a}
        for r, h, a in round_robin_pairings(team_ids)
        if a is not None
    ]


def next_power_of_two(n: int) -> int:
    size = 1
    while size < n:
        size *= 2
    return size


def bracket_seed_order(size: int) -> list[int]:
    """
    Seed indices (0-based) in bracket slot order for a power-of-two field.
    size 8 -> [0, 7, 3, 4, 1, 6, 2, 5]: consecutive pairs are first-round matches.
    """
    if size < 2 or size & (size - 1):
        raise ValueError(f"bracket size must be a power of two >= 2, got {size}")
    order = [0]
    span = 1
    while span < size:
        span *= 2
        order = [s for seed in order for s in (seed, span - 1 - seed)]
    return order


def next_bracket_slot(round_number: int, bracket_position: int) -> tuple[int, int, str]:
    """Where the winner of (round, position) plays next: (round, position, 'home' | 'away')."""
    side = "home" if bracket_position % 2 == 0 else "away"
    return round_number + 1, bracket_position // 2, side


def total_bracket_rounds(team_count: int) -> int:
    size = next_power_of_two(max(team_count, 2))
    return size.bit_length() - 1


def generate_single_elimination_bracket(seeded_team_ids: list[str]) -> list[dict[str, Any]]:
    """
    Every bracket slot for a knockout tournament, seeds in list order (best first).
    Returns dicts { "round_number", "bracket_position", "home_team_id", "away_team_id" }.
    Later-round slots start empty (None) except where a first-round bye already
    decided a team. First-round bye slots are not emitted.
    """
    n = len(seeded_team_ids)
    if n < 2:
        return []
    size = next_power_of_two(n)
    rounds = total_bracket_rounds(n)
    slots: dict[tuple[int, int], dict[str, Any]] = {}
    for rnd in range(1, rounds + 1):
        for pos in range(size >> rnd):
            slots[(rnd, pos)] = {
                "round_number": rnd,
                "bracket_position": pos,
                "home_team_id": None,
                "away_team_id": None,
            }
    order = bracket_seed_order(size)
    byes: list[int] = []
    for pos in range(size // 2):
        home_seed, away_seed = order[2 * pos], order[2 * pos + 1]
        home = seeded_team_ids[home_seed] if home_seed < n else None
        away = seeded_team_ids[away_seed] if away_seed < n else None
        if home is None or away is None:
            # Bye: advance the real team into round two
            advancing = home if home is not None else away
            nxt_round, nxt_pos, side = next_bracket_slot(1, pos)
            slots[(nxt_round, nxt_pos)][f"{side}_team_id"] = advancing
            byes.append(pos)
            continue
        slots[(1, pos)]["home_team_id"] = home
        slots[(1, pos)]["away_team_id"] = away
    for pos in byes:
        del slots[(1, pos)]
    return [slots[k] for k in sorted(slots)]
