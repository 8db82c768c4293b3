"""
Multi-round table rotations

Round one uses the department-aware allocation. Later rounds reseat everyone
so guests meet new people: each guest goes to the open table with the lowest
score, where the score adds up same-department guests already there, people
they have sat with before, and how far the table is from their previous one.
"""

import logging
import math
import random
from typing import Dict, List, Optional, Sequence, Set

from seatherder.core.exceptions import InvalidConfiguration
from seatherder.schemas.seating import GuestId, RoundAssignment, RotationPlan, SeatGuest
from seatherder.services.assignment_service import (
    TokenFactory,
    assign_tables,
    normalize_department,
    shuffle,
)

logger = logging.getLogger(__name__)

DEPARTMENT_MIX_WEIGHT = 1.0
REPEAT_TABLEMATE_WEIGHT = 1.0
TRAVEL_DISTANCE_WEIGHT = 1.0


def build_tablemate_history(rounds: Sequence[RoundAssignment]) -> Dict[GuestId, Set[GuestId]]:
    """Everyone each guest has already shared a table with"""
    history: Dict[GuestId, Set[GuestId]] = {}
    for round_ in rounds:
        by_table: Dict[int, List[GuestId]] = {}
        for guest_id, table_number in round_.seats.items():
            by_table.setdefault(table_number, []).append(guest_id)

        for seated in by_table.values():
            for guest_id in seated:
                mates = history.setdefault(guest_id, set())
                mates.update(other for other in seated if other != guest_id)
    return history


def assignment_score(
    guest: SeatGuest,
    table_number: int,
    table_guests: Sequence[SeatGuest],
    history: Dict[GuestId, Set[GuestId]],
    previous_table: Optional[int],
) -> float:
    """Cost of seating ``guest`` at a table; lower is better"""
    department = normalize_department(guest.department)
    same_department = 0
    if department:
        same_department = sum(
            1 for g in table_guests if normalize_department(g.department) == department
        )

    past_mates = history.get(guest.id, set())
    repeats = sum(1 for g in table_guests if g.id in past_mates)

    travel = abs(table_number - previous_table) if previous_table is not None else 0

    return (same_department * DEPARTMENT_MIX_WEIGHT
            + repeats * REPEAT_TABLEMATE_WEIGHT
            + travel * TRAVEL_DISTANCE_WEIGHT)


def _rotate_round(
    guests: Sequence[SeatGuest],
    table_size: int,
    round_number: int,
    previous_rounds: Sequence[RoundAssignment],
    rng: Optional[random.Random] = None,
) -> RoundAssignment:
    table_count = math.ceil(len(guests) / table_size)
    tables: List[List[SeatGuest]] = [[] for _ in range(table_count)]
    history = build_tablemate_history(previous_rounds)
    previous = previous_rounds[-1].seats if previous_rounds else {}

    seats: Dict[GuestId, int] = {}
    for guest in shuffle(guests, rng):
        best_index = -1
        best_score = math.inf
        for index, seated in enumerate(tables):
            if len(seated) >= table_size:
                continue
            score = assignment_score(guest, index + 1, seated, history, previous.get(guest.id))
            if score < best_score:
                best_score = score
                best_index = index

        if best_index == -1:
            best_index = next((i for i, t in enumerate(tables) if len(t) < table_size), -1)
        if best_index == -1:
            logger.warning(f"Round {round_number}: no open table for guest {guest.id}")
            continue

        tables[best_index].append(guest)
        seats[guest.id] = best_index + 1

    return RoundAssignment(round_number=round_number, seats=seats)


def extend_rounds(
    guests: Sequence[SeatGuest],
    table_size: int,
    existing_rounds: Sequence[RoundAssignment],
    number_of_rounds: int,
    rng: Optional[random.Random] = None,
) -> List[RoundAssignment]:
    """Grow or shrink a rotation to ``number_of_rounds`` rounds.

    Existing rounds are kept as they are; new rounds avoid everyone's
    earlier tablemates.
    """
    if number_of_rounds <= 0:
        raise InvalidConfiguration("Number of rounds must be at least 1")
    if table_size <= 0:
        raise InvalidConfiguration("Table size must be greater than 0")

    rounds = sorted(existing_rounds, key=lambda r: r.round_number)[:number_of_rounds]
    if not guests:
        return rounds

    for round_number in range(len(rounds) + 1, number_of_rounds + 1):
        rounds.append(_rotate_round(guests, table_size, round_number, rounds, rng))
    return rounds


def plan_rounds(
    guests: Sequence[SeatGuest],
    table_size: int,
    number_of_rounds: int = 1,
    rng: Optional[random.Random] = None,
    token_factory: Optional[TokenFactory] = None,
) -> RotationPlan:
    """Seat round one and plan every following rotation"""
    if number_of_rounds <= 0:
        raise InvalidConfiguration("Number of rounds must be at least 1")

    seated, tables = assign_tables(guests, table_size, rng, token_factory)
    if not seated:
        return RotationPlan()

    first = RoundAssignment(round_number=1, seats={g.id: g.table_number for g in seated})
    rounds = extend_rounds(seated, table_size, [first], number_of_rounds, rng)

    logger.info(f"Planned {len(rounds)} rounds for {len(seated)} guests")
    return RotationPlan(guests=seated, tables=tables, rounds=rounds)
