"""
Table assignment engine

Partitions a guest list into tables of a target size while spreading each
department across as many tables as possible. Everything here is pure and
in-memory: inputs are copied, never mutated, and randomness and token
generation are injectable so runs can be reproduced in tests.
"""

import logging
import math
import random
import uuid
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from seatherder.core.exceptions import InvalidConfiguration, SeatingInvariantError
from seatherder.schemas.seating import EventSeating, SeatGuest, TableAssignment

logger = logging.getLogger(__name__)

T = TypeVar("T")

TokenFactory = Callable[[], str]


def new_check_in_id() -> str:
    """Generate an opaque check-in token"""
    return str(uuid.uuid4())


def normalize_department(department: Optional[str]) -> Optional[str]:
    """Trimmed department name, or None when blank"""
    if department is None:
        return None
    department = department.strip()
    return department or None


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates)."""
    rng = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def group_by_department(
    guests: Sequence[SeatGuest],
    rng: Optional[random.Random] = None,
) -> Tuple[Dict[str, List[SeatGuest]], List[SeatGuest]]:
    """Bucket guests by department.

    Returns the department buckets, largest first, and the guests without a
    department. Both are shuffled so import order does not decide who lands
    on table 1.
    """
    by_department: Dict[str, List[SeatGuest]] = {}
    no_department: List[SeatGuest] = []

    for guest in guests:
        department = normalize_department(guest.department)
        if department:
            by_department.setdefault(department, []).append(guest.model_copy())
        else:
            no_department.append(guest.model_copy())

    # sorted() is stable: equal sized departments keep first-seen order
    ordered = sorted(by_department.items(), key=lambda item: len(item[1]), reverse=True)
    groups = {department: shuffle(members, rng) for department, members in ordered}

    return groups, shuffle(no_department, rng)


def _department_count(table: TableAssignment, department: Optional[str]) -> int:
    return sum(1 for g in table.guests if normalize_department(g.department) == department)


def _pick_table(
    tables: List[TableAssignment],
    table_size: int,
    department: Optional[str] = None,
) -> Optional[TableAssignment]:
    """Best table with a free seat, or None when every table is full"""
    available = [t for t in tables if len(t.guests) < table_size]
    if not available:
        return None

    if department is None:
        return min(available, key=lambda t: (len(t.guests), t.table_number))
    return min(
        available,
        key=lambda t: (_department_count(t, department), len(t.guests), t.table_number),
    )


def allocate(
    ordered_groups: Sequence[Sequence[SeatGuest]],
    no_department_guests: Sequence[SeatGuest],
    table_size: int,
    token_factory: Optional[TokenFactory] = None,
) -> Tuple[List[SeatGuest], List[TableAssignment]]:
    """Greedily seat already-grouped guests at tables.

    Department groups are placed first, in the order given, each guest going
    to the open table with the fewest guests from the same department (then
    the fewest guests overall). Guests without a department fill in last at
    the emptiest open table. Empty tables are dropped without renumbering the
    rest.

    Raises InvalidConfiguration when ``table_size`` is not positive.
    """
    if table_size <= 0:
        raise InvalidConfiguration("Table size must be greater than 0")

    token_factory = token_factory or new_check_in_id
    total_guests = sum(len(group) for group in ordered_groups) + len(no_department_guests)
    if total_guests == 0:
        return [], []

    table_count = math.ceil(total_guests / table_size)
    tables = [
        TableAssignment(table_number=number, check_in_id=token_factory(), guests=[])
        for number in range(1, table_count + 1)
    ]

    unseated: List[SeatGuest] = []

    def seat(guest: SeatGuest, department: Optional[str]) -> None:
        table = _pick_table(tables, table_size, department)
        if table is None:
            unseated.append(guest)
            return
        table.guests.append(
            guest.model_copy(update={
                "table_number": table.table_number,
                "check_in_id": token_factory(),
            })
        )

    for group in ordered_groups:
        for guest in group:
            seat(guest, normalize_department(guest.department))

    for guest in no_department_guests:
        seat(guest, None)

    if unseated:
        names = ", ".join(g.name for g in unseated)
        logger.error(f"{len(unseated)} of {total_guests} guests could not be seated "
                     f"at {table_count} tables of {table_size}: {names}")
        raise SeatingInvariantError(f"{len(unseated)} guests were left without a table")

    kept = [t for t in tables if t.guests]
    seated = [guest for table in kept for guest in table.guests]
    return seated, kept


def assign_tables(
    guests: Sequence[SeatGuest],
    table_size: int,
    rng: Optional[random.Random] = None,
    token_factory: Optional[TokenFactory] = None,
) -> Tuple[List[SeatGuest], List[TableAssignment]]:
    """Group, shuffle and seat a guest list.

    Every call reshuffles, so calling it again on the same guests is how a
    fresh arrangement is requested.
    """
    if table_size <= 0:
        raise InvalidConfiguration("Table size must be greater than 0")
    if not guests:
        return [], []

    groups, no_department = group_by_department(guests, rng)
    seated, tables = allocate(list(groups.values()), no_department, table_size, token_factory)

    logger.info(f"Seated {len(seated)} guests at {len(tables)} tables "
                f"({len(groups)} departments, {len(no_department)} without department)")
    return seated, tables


def reset_assignments(event: EventSeating) -> EventSeating:
    """Clear every table assignment of an event.

    Check-in state is kept; only seating is removed.
    """
    guests = [
        guest.model_copy(update={"table_number": None, "check_in_id": None})
        for guest in event.guests
    ]
    return event.model_copy(update={
        "guests": guests,
        "tables": [],
        "is_assigned": False,
        "current_round": 0,
    })
