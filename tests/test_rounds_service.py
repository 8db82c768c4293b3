"""
Tests for multi-round table rotations
"""

import random

import pytest

from seatherder.core.exceptions import InvalidConfiguration
from seatherder.schemas.seating import RoundAssignment, SeatGuest
from seatherder.services.rounds_service import (
    assignment_score,
    build_tablemate_history,
    extend_rounds,
    plan_rounds,
)

def make_guests(count, departments=("Sales", "Design", "Ops", None)):
    return [
        SeatGuest(id=i, name=f"Guest {i}", department=departments[i % len(departments)])
        for i in range(count)
    ]

def test_tablemate_history_records_everyone_seated_together():
    rounds = [
        RoundAssignment(round_number=1, seats={1: 1, 2: 1, 3: 2}),
        RoundAssignment(round_number=2, seats={1: 1, 2: 2, 3: 1}),
    ]

    history = build_tablemate_history(rounds)

    assert history[1] == {2, 3}
    assert history[2] == {1}
    assert history[3] == {1}

def test_tablemate_history_of_no_rounds_is_empty():
    assert build_tablemate_history([]) == {}

def test_assignment_score_adds_department_repeats_and_travel():
    guest = SeatGuest(id=1, name="Ann", department="Sales")
    at_table = [
        SeatGuest(id=2, name="Ben", department="Sales"),
        SeatGuest(id=3, name="Cal", department="Design"),
    ]

    assert assignment_score(guest, 2, at_table, {}, None) == 1
    assert assignment_score(guest, 2, at_table, {1: {3}}, None) == 2
    assert assignment_score(guest, 4, at_table, {1: {3}}, 1) == 5

def test_assignment_score_ignores_missing_departments():
    guest = SeatGuest(id=1, name="Ann")
    at_table = [SeatGuest(id=2, name="Ben"), SeatGuest(id=3, name="Cal", department="  ")]

    assert assignment_score(guest, 1, at_table, {}, None) == 0

def test_plan_rounds_seats_everyone_every_round():
    guests = make_guests(17)
    plan = plan_rounds(guests, 4, number_of_rounds=3, rng=random.Random(7))

    assert [r.round_number for r in plan.rounds] == [1, 2, 3]
    for round_ in plan.rounds:
        assert sorted(round_.seats) == list(range(17))
        per_table = {}
        for table_number in round_.seats.values():
            per_table[table_number] = per_table.get(table_number, 0) + 1
        assert max(per_table.values()) <= 4
        assert set(per_table) <= {1, 2, 3, 4, 5}

def test_first_round_matches_round_one_seating():
    plan = plan_rounds(make_guests(10), 4, number_of_rounds=2, rng=random.Random(1))

    assert plan.rounds[0].seats == {g.id: g.table_number for g in plan.guests}
    assert len(plan.tables) == 3

def test_plan_rounds_with_no_guests_is_empty():
    plan = plan_rounds([], 4, number_of_rounds=3)

    assert plan.guests == []
    assert plan.tables == []
    assert plan.rounds == []

@pytest.mark.parametrize("rounds", [0, -2])
def test_plan_rounds_rejects_non_positive_round_count(rounds):
    with pytest.raises(InvalidConfiguration):
        plan_rounds(make_guests(4), 2, number_of_rounds=rounds)

def test_plan_rounds_rejects_non_positive_table_size():
    with pytest.raises(InvalidConfiguration):
        plan_rounds(make_guests(4), 0, number_of_rounds=2)

def test_rounds_are_reproducible_with_seed():
    guests = make_guests(12)
    tokens = iter(range(1000))
    first = plan_rounds(guests, 4, 3, random.Random(11), lambda: str(next(tokens)))
    tokens = iter(range(1000))
    second = plan_rounds(guests, 4, 3, random.Random(11), lambda: str(next(tokens)))

    assert first == second

def test_extend_rounds_keeps_existing_rounds():
    guests = make_guests(8)
    plan = plan_rounds(guests, 4, number_of_rounds=2, rng=random.Random(3))

    extended = extend_rounds(plan.guests, 4, plan.rounds, 4, random.Random(4))

    assert extended[:2] == plan.rounds
    assert [r.round_number for r in extended] == [1, 2, 3, 4]

def test_extend_rounds_truncates_when_shrinking():
    guests = make_guests(8)
    plan = plan_rounds(guests, 4, number_of_rounds=3, rng=random.Random(3))

    shrunk = extend_rounds(plan.guests, 4, plan.rounds, 1)

    assert shrunk == plan.rounds[:1]
