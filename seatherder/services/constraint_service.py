"""
Seating constraints

A constraint pins one guest to a table, or asks that two guests never share
a table (repel) or share one at least once (attract). Constraints are checked
against stored arrangements: the checks below are pure, ``ConstraintService``
keeps them in the database.
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Sequence

from sqlalchemy.orm import Session

from seatherder.core.exceptions import InvalidConfiguration
from seatherder.models import Event, SeatingConstraint
from seatherder.schemas.constraint import ConstraintCreate
from seatherder.schemas.seating import (
    ConstraintConflict,
    ConstraintViolation,
    GuestId,
    RoundAssignment,
    SeatConstraint,
)
from seatherder.services.repositories import ConstraintRepo, EventRepo, GuestRepo, RoundRepo

logger = logging.getLogger(__name__)

PAIR_TYPES = ("repel", "attract")


def _pair(constraint: SeatConstraint) -> FrozenSet[GuestId]:
    return frozenset(constraint.guest_ids)


def validate_constraint(constraint: SeatConstraint, existing: Sequence[SeatConstraint] = ()) -> None:
    """Raise ``InvalidConfiguration`` unless the constraint can be added next to ``existing``"""
    if constraint.type == "pin":
        if len(constraint.guest_ids) != 1:
            raise InvalidConfiguration("Pin constraints require exactly one guest")
        if constraint.table_number is None:
            raise InvalidConfiguration("Pin constraints require a table number")
        if constraint.table_number <= 0:
            raise InvalidConfiguration("Table numbers start at 1")
        guest_id = constraint.guest_ids[0]
        if any(c.type == "pin" and c.guest_ids[0] == guest_id for c in existing):
            raise InvalidConfiguration("This guest already has a pin constraint")
        return

    if len(constraint.guest_ids) != 2:
        raise InvalidConfiguration("Repel and attract constraints require exactly two guests")
    if constraint.guest_ids[0] == constraint.guest_ids[1]:
        raise InvalidConfiguration("A constraint needs two different guests")
    if any(c.type == constraint.type and _pair(c) == _pair(constraint) for c in existing):
        raise InvalidConfiguration(f"This pair already has a {constraint.type} constraint")


def constraint_violations(
    rounds: Sequence[RoundAssignment],
    constraints: Sequence[SeatConstraint],
) -> List[ConstraintViolation]:
    """Every way the seating in ``rounds`` breaks ``constraints``.

    Pins and repels are checked round by round. An attract pair only has to
    share a table once, so its violation is reported with round 0. Without
    any rounds there is nothing to check.
    """
    if not rounds:
        return []

    violations = []
    for constraint in constraints:
        if constraint.type == "pin":
            guest_id = constraint.guest_ids[0]
            for round_ in rounds:
                table_number = round_.seats.get(guest_id)
                if table_number is not None and table_number != constraint.table_number:
                    violations.append(ConstraintViolation(
                        type="pin",
                        round_number=round_.round_number,
                        constraint_id=constraint.id,
                        description=(f"Guest pinned to table {constraint.table_number} "
                                     f"but assigned to table {table_number}")
                    ))
            continue

        first, second = constraint.guest_ids
        shared_tables = {
            round_.round_number: round_.seats[first]
            for round_ in rounds
            if first in round_.seats and round_.seats.get(second) == round_.seats[first]
        }

        if constraint.type == "repel":
            for round_number, table_number in shared_tables.items():
                violations.append(ConstraintViolation(
                    type="repel",
                    round_number=round_number,
                    constraint_id=constraint.id,
                    description=f"Repelled guests seated together at table {table_number}"
                ))
        elif not shared_tables:
            violations.append(ConstraintViolation(
                type="attract",
                round_number=0,
                constraint_id=constraint.id,
                description="Attracted guests never seated together in any round"
            ))

    return violations


def find_conflicts(
    constraints: Sequence[SeatConstraint],
    table_size: int,
    names: Optional[Dict[GuestId, str]] = None,
) -> List[ConstraintConflict]:
    """Constraints that contradict each other or overfill a table"""
    names = names or {}
    conflicts = []

    attracts = {_pair(c): c for c in constraints if c.type == "attract"}
    for repel in (c for c in constraints if c.type == "repel"):
        attract = attracts.get(_pair(repel))
        if attract is not None:
            who = " and ".join(str(names.get(g, g)) for g in repel.guest_ids)
            conflicts.append(ConstraintConflict(
                constraint_ids=[repel.id, attract.id],
                message=f"Conflicting constraints: {who} have both repel and attract constraints"
            ))

    pins_by_table: Dict[int, List[Optional[int]]] = {}
    for pin in (c for c in constraints if c.type == "pin"):
        pins_by_table.setdefault(pin.table_number, []).append(pin.id)

    for table_number, constraint_ids in sorted(pins_by_table.items()):
        if len(constraint_ids) > table_size:
            conflicts.append(ConstraintConflict(
                constraint_ids=constraint_ids,
                message=(f"Table {table_number} has {len(constraint_ids)} pinned guests "
                         f"but only {table_size} seats")
            ))

    return conflicts


class ConstraintService:
    """Service for stored seating constraints"""

    @staticmethod
    def list_constraints(db: Session, event_id: int) -> List[SeatConstraint]:
        return [SeatConstraint.model_validate(c) for c in ConstraintRepo.list_for_event(db, event_id)]

    @staticmethod
    def create_constraint(db: Session, event: Event, data: ConstraintCreate) -> SeatingConstraint:
        """Validate and store a new constraint"""
        for guest_id in data.guest_ids:
            if not GuestRepo.get(db, event.id, guest_id):
                raise InvalidConfiguration(f"Guest {guest_id} is not part of this event")

        candidate = SeatConstraint(
            type=data.type,
            guest_ids=data.guest_ids,
            table_number=data.table_number if data.type == "pin" else None,
            reason=data.reason
        )
        validate_constraint(candidate, ConstraintService.list_constraints(db, event.id))

        constraint = SeatingConstraint(
            event_id=event.id,
            type=candidate.type,
            guest_id=candidate.guest_ids[0],
            other_guest_id=candidate.guest_ids[1] if len(candidate.guest_ids) > 1 else None,
            table_number=candidate.table_number,
            reason=candidate.reason
        )
        db.add(constraint)
        db.commit()
        db.refresh(constraint)

        logger.info(f"Event {event.public_code}: added {constraint.type} constraint {constraint.id}")
        return constraint

    @staticmethod
    def delete_constraint(db: Session, event_id: int, constraint_id: int) -> bool:
        constraint = ConstraintRepo.get(db, event_id, constraint_id)
        if not constraint:
            return False
        db.delete(constraint)
        db.commit()
        return True

    @staticmethod
    def get_constraint_report(db: Session, event_id: int) -> Optional[Dict]:
        """Violations in the stored rounds plus conflicts between constraints"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None

        constraints = ConstraintService.list_constraints(db, event.id)
        rounds = [
            RoundAssignment(round_number=number, seats=seats)
            for number, seats in sorted(RoundRepo.seats_by_round(db, event.id).items())
        ]
        names = {guest.id: guest.name for guest in GuestRepo.list_for_event(db, event.id)}

        violations = constraint_violations(rounds, constraints)
        conflicts = find_conflicts(constraints, event.table_size, names)
        return {
            "constraint_count": len(constraints),
            "violations": [v.model_dump() for v in violations],
            "conflicts": [c.model_dump() for c in conflicts]
        }
