"""
Repository layer over the SQLAlchemy session.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from seatherder.core.config import settings
from seatherder.models import Event, Guest, GuestRoundAssignment, SeatingConstraint, Table


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input only matches literally"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get_by_public_code(db: Session, public_code: str) -> Optional[Event]:
        return db.query(Event).filter(Event.public_code == public_code).first()

    @staticmethod
    def get_by_id(db: Session, event_id: int) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def public_code_exists(db: Session, public_code: str) -> bool:
        return db.query(Event.id).filter(Event.public_code == public_code).first() is not None

    @staticmethod
    def create(
        db: Session,
        name: str,
        organizer_email: str,
        public_code: str,
        date: Optional[datetime] = None,
        table_size: int = settings.DEFAULT_TABLE_SIZE,
        number_of_rounds: int = 1,
        round_duration: Optional[int] = None,
    ) -> Event:
        event = Event(
            name=name,
            date=date,
            organizer_email=organizer_email,
            public_code=public_code,
            table_size=table_size,
            number_of_rounds=number_of_rounds,
            round_duration=round_duration,
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        return event


# -------- Guest repository --------

class GuestRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[Guest]:
        return db.query(Guest).filter(Guest.event_id == event_id).order_by(Guest.id).all()

    @staticmethod
    def get(db: Session, event_id: int, guest_id: int) -> Optional[Guest]:
        return db.query(Guest).filter(Guest.event_id == event_id, Guest.id == guest_id).first()

    @staticmethod
    def get_by_check_in_id(db: Session, check_in_id: str) -> Optional[Guest]:
        return db.query(Guest).filter(Guest.check_in_id == check_in_id).first()

    @staticmethod
    def search_by_name(db: Session, event_id: int, name_icontains: str, limit: int = 20) -> List[Guest]:
        """Seated guests whose name or department contains the text"""
        text = name_icontains.strip().lower()
        if not text:
            return []

        pattern = f"%{escape_like(text)}%"
        return db.query(Guest).filter(
            Guest.event_id == event_id,
            Guest.table_number.isnot(None),
            or_(
                func.lower(Guest.name).like(pattern, escape="\\"),
                func.lower(Guest.department).like(pattern, escape="\\")
            )
        ).order_by(Guest.name).limit(limit).all()

    @staticmethod
    def list_table(db: Session, event_id: int, table_number: int) -> List[Guest]:
        return db.query(Guest).filter(
            Guest.event_id == event_id,
            Guest.table_number == table_number
        ).order_by(Guest.name).all()

    @staticmethod
    def set_checked_in(db: Session, guest: Guest, checked_in: bool = True) -> None:
        guest.checked_in = checked_in
        guest.updated_at = datetime.utcnow()
        db.commit()

    @staticmethod
    def delete_for_event(db: Session, event_id: int) -> None:
        db.query(GuestRoundAssignment).filter(GuestRoundAssignment.event_id == event_id).delete()
        ConstraintRepo.delete_for_event(db, event_id)
        db.query(Guest).filter(Guest.event_id == event_id).delete()


# -------- Table repository --------

class TableRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[Table]:
        return db.query(Table).filter(Table.event_id == event_id).order_by(Table.table_number).all()

    @staticmethod
    def get_by_check_in_id(db: Session, check_in_id: str) -> Optional[Table]:
        return db.query(Table).filter(Table.check_in_id == check_in_id).first()

    @staticmethod
    def delete_for_event(db: Session, event_id: int) -> None:
        db.query(Table).filter(Table.event_id == event_id).delete()


# -------- Round assignment repository --------

class RoundRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[GuestRoundAssignment]:
        return db.query(GuestRoundAssignment).filter(
            GuestRoundAssignment.event_id == event_id
        ).order_by(GuestRoundAssignment.round_number).all()

    @staticmethod
    def list_for_guest(db: Session, guest_id: int) -> List[GuestRoundAssignment]:
        return db.query(GuestRoundAssignment).filter(
            GuestRoundAssignment.guest_id == guest_id
        ).order_by(GuestRoundAssignment.round_number).all()

    @staticmethod
    def seats_by_round(db: Session, event_id: int) -> Dict[int, Dict[int, int]]:
        """round number -> guest id -> table number"""
        rounds: Dict[int, Dict[int, int]] = {}
        for row in RoundRepo.list_for_event(db, event_id):
            rounds.setdefault(row.round_number, {})[row.guest_id] = row.table_number
        return rounds

    @staticmethod
    def delete_for_event(db: Session, event_id: int, from_round: int = 1) -> None:
        db.query(GuestRoundAssignment).filter(
            GuestRoundAssignment.event_id == event_id,
            GuestRoundAssignment.round_number >= from_round
        ).delete()


# -------- Seating constraint repository --------

class ConstraintRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[SeatingConstraint]:
        return db.query(SeatingConstraint).filter(
            SeatingConstraint.event_id == event_id
        ).order_by(SeatingConstraint.id).all()

    @staticmethod
    def get(db: Session, event_id: int, constraint_id: int) -> Optional[SeatingConstraint]:
        return db.query(SeatingConstraint).filter(
            SeatingConstraint.event_id == event_id,
            SeatingConstraint.id == constraint_id
        ).first()

    @staticmethod
    def delete_for_guest(db: Session, guest_id: int) -> None:
        db.query(SeatingConstraint).filter(
            or_(SeatingConstraint.guest_id == guest_id, SeatingConstraint.other_guest_id == guest_id)
        ).delete(synchronize_session=False)

    @staticmethod
    def delete_for_event(db: Session, event_id: int) -> None:
        db.query(SeatingConstraint).filter(SeatingConstraint.event_id == event_id).delete()
