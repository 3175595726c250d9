"""
Tests for fixture generation: round robin (circle method) and knockout brackets.
Deterministic; no duplicate matchups; at most one game per team per round.
"""
from __future__ import annotations

import itertools
from collections import Counter

import pytest

from clubhouse.services.scheduling import (
    BYE,
    bracket_seed_order,
    generate_round_robin_schedule,
    generate_single_elimination_bracket,
    next_bracket_slot,
    next_power_of_two,
    round_robin_pairings,
    total_bracket_rounds,
)


def test_round_robin_two_teams():
    pairings = round_robin_pairings(["A", "B"])
    assert len(pairings) == 1
    r, h, a = pairings[0]
    assert r == 1
    assert {h, a} == {"A", "B"}


def test_round_robin_three_teams_has_one_bye_each():
    pairings = round_robin_pairings(["A", "B", "C"])
    real = [(h, a) for _, h, a in pairings if a is not None]
    byes = [h for _, h, a in pairings if a is None]
    assert {tuple(sorted(p)) for p in real} == {("A", "B"), ("A", "C"), ("B", "C")}
    assert sorted(byes) == ["A", "B", "C"]
    assert BYE not in {h for _, h, _ in pairings}


@pytest.mark.parametrize("n", [4, 5, 6, 7, 8])
def test_round_robin_every_pair_once(n):
    teams = [f"T{i}" for i in range(n)]
    schedule = generate_round_robin_schedule(teams)
    pairs = [tuple(sorted((f["home_team_id"], f["away_team_id"]))) for f in schedule]
    assert len(pairs) == n * (n - 1) // 2
    assert set(pairs) == {tuple(sorted(p)) for p in itertools.combinations(teams, 2)}


@pytest.mark.parametrize("n", [4, 5, 6])
def test_round_robin_one_game_per_team_per_round(n):
    teams = [f"T{i}" for i in range(n)]
    schedule = generate_round_robin_schedule(teams)
    by_round: dict[int, list[str]] = {}
    for f in schedule:
        by_round.setdefault(f["round_number"], []).extend([f["home_team_id"], f["away_team_id"]])
    for played in by_round.values():
        assert len(played) == len(set(played))
    expected_rounds = n - 1 if n % 2 == 0 else n
    assert max(by_round) == expected_rounds


def test_round_robin_is_deterministic():
    teams = ["a", "b", "c", "d", "e", "f"]
    assert generate_round_robin_schedule(teams) == generate_round_robin_schedule(list(teams))


def test_round_robin_empty():
    assert round_robin_pairings([]) == []
    assert generate_round_robin_schedule([]) == []


def test_next_power_of_two():
    assert [next_power_of_two(n) for n in (1, 2, 3, 5, 8, 9)] == [1, 2, 4, 8, 8, 16]


def test_bracket_seed_order_standard():
    assert bracket_seed_order(2) == [0, 1]
    assert bracket_seed_order(4) == [0, 3, 1, 2]
    assert bracket_seed_order(8) == [0, 7, 3, 4, 1, 6, 2, 5]


def test_bracket_seed_order_rejects_non_power_of_two():
    with pytest.raises(ValueError):
        bracket_seed_order(6)


def test_next_bracket_slot():
    assert next_bracket_slot(1, 0) == (2, 0, "home")
    assert next_bracket_slot(1, 1) == (2, 0, "away")
    assert next_bracket_slot(2, 3) == (3, 1, "away")


def test_total_bracket_rounds():
    assert total_bracket_rounds(2) == 1
    assert total_bracket_rounds(4) == 2
    assert total_bracket_rounds(5) == 3
    assert total_bracket_rounds(8) == 3


def test_bracket_four_teams():
    slots = generate_single_elimination_bracket(["s1", "s2", "s3", "s4"])
    first = [s for s in slots if s["round_number"] == 1]
    assert [(s["home_team_id"], s["away_team_id"]) for s in first] == [("s1", "s4"), ("s2", "s3")]
    final = [s for s in slots if s["round_number"] == 2]
    assert len(final) == 1
    assert final[0]["home_team_id"] is None and final[0]["away_team_id"] is None


def test_bracket_with_byes_prefills_round_two():
    """Three teams: the top seed gets a bye straight into the final."""
    slots = generate_single_elimination_bracket(["s1", "s2", "s3"])
    assert len(slots) == 2
    first = [s for s in slots if s["round_number"] == 1]
    assert len(first) == 1
    assert first[0]["bracket_position"] == 1
    assert {first[0]["home_team_id"], first[0]["away_team_id"]} == {"s2", "s3"}
    final = next(s for s in slots if s["round_number"] == 2)
    assert final["home_team_id"] == "s1"
    assert final["away_team_id"] is None


def test_bracket_top_seeds_only_meet_in_final():
    seeds = [f"s{i}" for i in range(1, 9)]
    slots = generate_single_elimination_bracket(seeds)
    first = [s for s in slots if s["round_number"] == 1]
    # s1 and s2 are drawn into opposite halves
    half_of = {}
    for s in first:
        for team in (s["home_team_id"], s["away_team_id"]):
            half_of[team] = s["bracket_position"] // 2
    assert half_of["s1"] != half_of["s2"]
    assert Counter(s["round_number"] for s in slots) == {1: 4, 2: 2, 3: 1}


def test_bracket_needs_two_teams():
    assert generate_single_elimination_bracket(["solo"]) == []
