"""
Seating arrangement service: runs the assignment engine against stored events
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from seatherder.core.exceptions import InvalidConfiguration, RoundStateError
from seatherder.models import Event, GuestRoundAssignment, Table
from seatherder.schemas.event import SeatingInfo
from seatherder.schemas.seating import (
    EventSeating,
    RoundAssignment,
    SeatGuest,
    TableAssignment,
)
from seatherder.services.assignment_service import reset_assignments
from seatherder.services.clustering_service import detect_clustering, find_clustered_tables
from seatherder.services.repositories import EventRepo, GuestRepo, RoundRepo, TableRepo
from seatherder.services.rounds_service import extend_rounds, plan_rounds

logger = logging.getLogger(__name__)

class SeatingService:
    """Service for seating arrangement operations"""

    @staticmethod
    def to_event_seating(event: Event) -> EventSeating:
        """Convert a stored event into engine values"""
        guests = [SeatGuest.model_validate(guest) for guest in event.guests]
        by_table: Dict[int, List[SeatGuest]] = {}
        for guest in guests:
            if guest.table_number is not None:
                by_table.setdefault(guest.table_number, []).append(guest)

        tables = [
            TableAssignment(
                table_number=table.table_number,
                check_in_id=table.check_in_id,
                guests=by_table.get(table.table_number, [])
            )
            for table in event.tables
        ]

        return EventSeating(
            id=event.id,
            name=event.name,
            table_size=event.table_size,
            guests=guests,
            tables=tables,
            is_assigned=event.is_assigned,
            number_of_rounds=event.number_of_rounds,
            current_round=event.current_round,
        )

    @staticmethod
    def _store_rounds(db: Session, event_id: int, rounds: List[RoundAssignment]) -> None:
        for round_ in rounds:
            for guest_id, table_number in round_.seats.items():
                db.add(GuestRoundAssignment(
                    event_id=event_id,
                    guest_id=guest_id,
                    round_number=round_.round_number,
                    table_number=table_number
                ))

    @staticmethod
    def assign_event(
        db: Session,
        event_id: int,
        rng: Optional[random.Random] = None
    ) -> Optional[Dict]:
        """Generate a fresh seating for every round and store it"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None

        stored_guests = GuestRepo.list_for_event(db, event.id)
        if not stored_guests:
            raise InvalidConfiguration("No guests to assign")

        guests = [SeatGuest.model_validate(guest) for guest in stored_guests]
        plan = plan_rounds(guests, event.table_size, event.number_of_rounds, rng)

        TableRepo.delete_for_event(db, event.id)
        RoundRepo.delete_for_event(db, event.id)
        db.flush()

        for table in plan.tables:
            db.add(Table(
                event_id=event.id,
                table_number=table.table_number,
                check_in_id=table.check_in_id
            ))

        seated = {guest.id: guest for guest in plan.guests}
        for guest in stored_guests:
            assigned = seated[guest.id]
            guest.table_number = assigned.table_number
            guest.check_in_id = assigned.check_in_id

        SeatingService._store_rounds(db, event.id, plan.rounds)

        event.is_assigned = True
        event.current_round = 0
        SeatingService._clear_timer(event)
        db.commit()

        logger.info(f"Event {event.public_code}: {len(plan.guests)} guests seated "
                    f"at {len(plan.tables)} tables over {len(plan.rounds)} rounds")

        return {
            "table_count": len(plan.tables),
            "guest_count": len(plan.guests),
            "number_of_rounds": len(plan.rounds)
        }

    @staticmethod
    def reset_event(db: Session, event_id: int) -> Optional[EventSeating]:
        """Remove every table assignment of an event, keeping check-ins"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None

        cleared = reset_assignments(SeatingService.to_event_seating(event))

        RoundRepo.delete_for_event(db, event.id)
        TableRepo.delete_for_event(db, event.id)
        for guest in GuestRepo.list_for_event(db, event.id):
            guest.table_number = None
            guest.check_in_id = None

        event.is_assigned = cleared.is_assigned
        event.current_round = cleared.current_round
        SeatingService._clear_timer(event)
        db.commit()

        logger.info(f"Event {event.public_code}: assignments reset")
        return cleared

    @staticmethod
    def update_rounds(
        db: Session,
        event_id: int,
        number_of_rounds: int,
        rng: Optional[random.Random] = None
    ) -> Optional[Dict]:
        """Change the number of rotations, planning any new rounds"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None
        if number_of_rounds <= 0:
            raise InvalidConfiguration("Number of rounds must be at least 1")

        old_rounds = event.number_of_rounds
        if not event.is_assigned or number_of_rounds <= old_rounds:
            if event.is_assigned:
                RoundRepo.delete_for_event(db, event.id, from_round=number_of_rounds + 1)
            event.number_of_rounds = number_of_rounds
            event.current_round = min(event.current_round, number_of_rounds)
            db.commit()
            return {"number_of_rounds": number_of_rounds, "regenerated": False}

        guests = [SeatGuest.model_validate(guest) for guest in GuestRepo.list_for_event(db, event.id)]
        existing = [
            RoundAssignment(round_number=number, seats=seats)
            for number, seats in sorted(RoundRepo.seats_by_round(db, event.id).items())
        ]
        rounds = extend_rounds(guests, event.table_size, existing, number_of_rounds, rng)

        SeatingService._store_rounds(db, event.id, rounds[len(existing):])
        event.number_of_rounds = number_of_rounds
        db.commit()

        return {
            "number_of_rounds": number_of_rounds,
            "regenerated": True,
            "new_rounds_added": number_of_rounds - old_rounds
        }

    @staticmethod
    def _clear_timer(event: Event) -> None:
        event.round_started_at = None
        event.is_paused = False
        event.paused_time_remaining = None

    @staticmethod
    def update_table_size(db: Session, event_id: int, table_size: int) -> Optional[Dict]:
        """Change the seats per table; an existing arrangement is kept until the next assignment"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None
        if table_size <= 0:
            raise InvalidConfiguration("Table size must be positive")

        event.table_size = table_size
        db.commit()
        return {"table_size": table_size, "needs_reassignment": event.is_assigned}

    @staticmethod
    def update_round_duration(db: Session, event_id: int, round_duration: Optional[int]) -> Optional[Dict]:
        """Set the round timer in minutes; zero or None turns it off"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None

        event.round_duration = round_duration if round_duration and round_duration > 0 else None
        db.commit()
        return {"round_duration": event.round_duration}

    @staticmethod
    def start_next_round(db: Session, event_id: int, now: Optional[datetime] = None) -> Optional[Dict]:
        """Advance to the next rotation and start its timer"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None
        if not event.is_assigned:
            raise RoundStateError("Tables must be assigned first")

        next_round = event.current_round + 1
        if next_round > event.number_of_rounds:
            raise RoundStateError("All rounds have been completed")

        SeatingService._clear_timer(event)
        event.current_round = next_round
        event.round_started_at = now or datetime.utcnow()
        db.commit()

        logger.info(f"Event {event.public_code}: round {next_round} of {event.number_of_rounds} started")
        return {"current_round": next_round, "max_rounds": event.number_of_rounds}

    @staticmethod
    def end_current_round(db: Session, event_id: int) -> Optional[Dict]:
        """Stop the running round's timer, keeping its number"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None
        if not event.current_round:
            raise RoundStateError("No active round to end")

        SeatingService._clear_timer(event)
        db.commit()
        return {"ended_round": event.current_round}

    @staticmethod
    def reset_rounds(db: Session, event_id: int) -> Optional[Dict]:
        """Go back to before round one, keeping table assignments"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None

        event.current_round = 0
        SeatingService._clear_timer(event)
        db.commit()
        return {"current_round": 0}

    @staticmethod
    def pause_round(db: Session, event_id: int, now: Optional[datetime] = None) -> Optional[Dict]:
        """Freeze the round timer, remembering the time left"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None
        if not event.current_round:
            raise RoundStateError("No active round to pause")
        if not event.round_started_at or not event.round_duration:
            raise RoundStateError("Round has no timer to pause")
        if event.is_paused:
            raise RoundStateError("Round is already paused")

        now = now or datetime.utcnow()
        ends_at = event.round_started_at + timedelta(minutes=event.round_duration)
        remaining = max(0, int((ends_at - now).total_seconds() * 1000))

        event.is_paused = True
        event.paused_time_remaining = remaining
        db.commit()
        return {"remaining_ms": remaining}

    @staticmethod
    def resume_round(db: Session, event_id: int, now: Optional[datetime] = None) -> Optional[Dict]:
        """Restart a paused timer with the time that was left"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None
        if not event.is_paused:
            raise RoundStateError("Round is not paused")
        if not event.paused_time_remaining or event.paused_time_remaining <= 0:
            raise RoundStateError("No time remaining to resume")

        now = now or datetime.utcnow()
        elapsed = timedelta(minutes=event.round_duration or 0) - timedelta(
            milliseconds=event.paused_time_remaining)

        event.round_started_at = now - elapsed
        event.is_paused = False
        event.paused_time_remaining = None
        db.commit()
        return {"round_started_at": event.round_started_at.isoformat()}

    @staticmethod
    def get_clustering_report(db: Session, event_id: int) -> Optional[Dict]:
        """Clustering warnings for every table of an event"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            return None

        seating = SeatingService.to_event_seating(event)
        return {
            table_number: report.model_dump()
            for table_number, report in find_clustered_tables(seating.tables).items()
        }

    @staticmethod
    def get_guest_seating_info(
        db: Session,
        check_in_id: str
    ) -> Optional[SeatingInfo]:
        """Get seating information for the guest holding a check-in token"""
        guest = GuestRepo.get_by_check_in_id(db, check_in_id)
        if not guest or guest.table_number is None:
            return None

        table_mates = [
            {
                "name": mate.name,
                "department": mate.department,
                "checked_in": mate.checked_in
            }
            for mate in GuestRepo.list_table(db, guest.event_id, guest.table_number)
            if mate.id != guest.id
        ]

        round_tables = [
            {"round_number": row.round_number, "table_number": row.table_number}
            for row in RoundRepo.list_for_guest(db, guest.id)
        ]

        return SeatingInfo(
            guest_name=guest.name,
            department=guest.department,
            table_number=guest.table_number,
            check_in_id=guest.check_in_id,
            checked_in=guest.checked_in,
            table_mates=table_mates,
            round_tables=round_tables
        )

    @staticmethod
    def get_seating_summary(
        db: Session,
        public_code: str,
        include_names: bool = False
    ) -> Optional[Dict]:
        """Get public seating summary"""
        event = EventRepo.get_by_public_code(db, public_code)
        if not event:
            return None

        seating = SeatingService.to_event_seating(event)

        tables = []
        for table in seating.tables:
            clustering = detect_clustering(table)
            table_info = {
                "table_number": table.table_number,
                "total_guests": len(table.guests),
                "checked_in": sum(1 for g in table.guests if g.checked_in),
                "available_seats": max(event.table_size - len(table.guests), 0),
                "clustering": clustering.model_dump()
            }

            if include_names:
                table_info["guests"] = [
                    {
                        "name": guest.name,
                        "department": guest.department,
                        "checked_in": guest.checked_in
                    }
                    for guest in sorted(table.guests, key=lambda g: g.name)
                ]

            tables.append(table_info)

        return {
            "event_name": event.name,
            "event_date": event.date.isoformat() if event.date else None,
            "is_assigned": event.is_assigned,
            "table_size": event.table_size,
            "number_of_rounds": event.number_of_rounds,
            "total_guests": len(seating.guests),
            "checked_in_guests": sum(1 for g in seating.guests if g.checked_in),
            "total_tables": len(tables),
            "tables": tables
        }
