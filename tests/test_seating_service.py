"""
Tests for seating service functionality
"""

import random
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from seatherder.core.db import Base
from seatherder.core.exceptions import InvalidConfiguration, RoundStateError
from seatherder.models import Event, Guest, GuestRoundAssignment, Table
from seatherder.services.seating_service import SeatingService

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_seating.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def offsite_event(db_session):
    """Event with ten guests across departments, two already checked in"""
    event = Event(
        name="Company Offsite",
        organizer_email="organizer@example.com",
        public_code="OFFSITE1",
        table_size=4,
        number_of_rounds=1
    )
    db_session.add(event)
    db_session.flush()

    guests_data = [
        ("Ada", "Engineering", True),
        ("Ben", "Engineering", False),
        ("Cleo", "Engineering", False),
        ("Dev", "Engineering", True),
        ("Eve", "Sales", False),
        ("Finn", "Sales", False),
        ("Gus", "Design", False),
        ("Hana", "Design", False),
        ("Ivo", None, False),
        ("Jo", "  ", False),
    ]
    for name, department, checked_in in guests_data:
        db_session.add(Guest(
            event_id=event.id,
            name=name,
            department=department,
            checked_in=checked_in
        ))

    db_session.commit()
    db_session.refresh(event)
    return event

def test_assign_event_seats_every_guest(db_session, offsite_event):
    result = SeatingService.assign_event(db_session, offsite_event.id, rng=random.Random(2))

    assert result == {"table_count": 3, "guest_count": 10, "number_of_rounds": 1}

    guests = db_session.query(Guest).filter(Guest.event_id == offsite_event.id).all()
    tables = db_session.query(Table).filter(Table.event_id == offsite_event.id).all()

    assert sorted(t.table_number for t in tables) == [1, 2, 3]
    assert all(g.table_number in (1, 2, 3) for g in guests)
    assert len({g.check_in_id for g in guests}) == 10
    assert len({t.check_in_id for t in tables}) == 3
    assert not {g.check_in_id for g in guests} & {t.check_in_id for t in tables}

    per_table = {}
    for guest in guests:
        per_table[guest.table_number] = per_table.get(guest.table_number, 0) + 1
    assert max(per_table.values()) <= 4

    db_session.refresh(offsite_event)
    assert offsite_event.is_assigned
    assert offsite_event.current_round == 0

def test_assign_event_stores_round_one(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id, rng=random.Random(2))

    rows = db_session.query(GuestRoundAssignment).all()
    tables_by_guest = {g.id: g.table_number for g in offsite_event.guests}

    assert len(rows) == 10
    assert all(row.round_number == 1 for row in rows)
    assert {row.guest_id: row.table_number for row in rows} == tables_by_guest

def test_reassigning_replaces_previous_seating(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)
    first_tokens = {g.check_in_id for g in offsite_event.guests}

    SeatingService.assign_event(db_session, offsite_event.id)
    db_session.refresh(offsite_event)

    assert db_session.query(Table).count() == 3
    assert db_session.query(GuestRoundAssignment).count() == 10
    assert not first_tokens & {g.check_in_id for g in offsite_event.guests}

def test_assign_event_keeps_check_ins(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)

    checked_in = sorted(g.name for g in offsite_event.guests if g.checked_in)
    assert checked_in == ["Ada", "Dev"]

def test_assign_event_with_rounds(db_session, offsite_event):
    offsite_event.number_of_rounds = 3
    db_session.commit()

    result = SeatingService.assign_event(db_session, offsite_event.id, rng=random.Random(5))

    assert result["number_of_rounds"] == 3
    rounds = {}
    for row in db_session.query(GuestRoundAssignment).all():
        rounds.setdefault(row.round_number, []).append(row)
    assert sorted(rounds) == [1, 2, 3]
    assert all(len(rows) == 10 for rows in rounds.values())

def test_assign_event_without_guests_fails(db_session):
    event = Event(name="Empty", organizer_email="a@example.com", public_code="EMPTY1", table_size=8)
    db_session.add(event)
    db_session.commit()

    with pytest.raises(InvalidConfiguration):
        SeatingService.assign_event(db_session, event.id)

def test_assign_unknown_event_returns_none(db_session):
    assert SeatingService.assign_event(db_session, 999) is None

def test_reset_event_clears_seating(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)

    cleared = SeatingService.reset_event(db_session, offsite_event.id)
    db_session.refresh(offsite_event)

    assert cleared.tables == []
    assert cleared.is_assigned is False
    assert not offsite_event.is_assigned
    assert db_session.query(Table).count() == 0
    assert db_session.query(GuestRoundAssignment).count() == 0
    for guest in offsite_event.guests:
        assert guest.table_number is None
        assert guest.check_in_id is None
    assert sorted(g.name for g in offsite_event.guests if g.checked_in) == ["Ada", "Dev"]

def test_reset_event_twice_is_harmless(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)

    first = SeatingService.reset_event(db_session, offsite_event.id)
    second = SeatingService.reset_event(db_session, offsite_event.id)

    assert first == second

def test_update_rounds_adds_new_rounds(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)

    result = SeatingService.update_rounds(db_session, offsite_event.id, 3, rng=random.Random(1))

    assert result == {"number_of_rounds": 3, "regenerated": True, "new_rounds_added": 2}
    assert db_session.query(GuestRoundAssignment).count() == 30

def test_update_rounds_shrinks_without_regenerating(db_session, offsite_event):
    offsite_event.number_of_rounds = 3
    db_session.commit()
    SeatingService.assign_event(db_session, offsite_event.id)

    result = SeatingService.update_rounds(db_session, offsite_event.id, 1)

    assert result == {"number_of_rounds": 1, "regenerated": False}
    assert db_session.query(GuestRoundAssignment).count() == 10

def test_update_rounds_rejects_zero(db_session, offsite_event):
    with pytest.raises(InvalidConfiguration):
        SeatingService.update_rounds(db_session, offsite_event.id, 0)

def test_seating_summary(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)

    summary = SeatingService.get_seating_summary(db_session, "OFFSITE1", include_names=True)

    assert summary["total_guests"] == 10
    assert summary["checked_in_guests"] == 2
    assert summary["total_tables"] == 3
    assert sum(t["total_guests"] for t in summary["tables"]) == 10
    for table in summary["tables"]:
        assert table["available_seats"] == 4 - table["total_guests"]
        assert len(table["guests"]) == table["total_guests"]
        assert "has_clustering" in table["clustering"]

def test_seating_summary_hides_names_by_default(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)

    summary = SeatingService.get_seating_summary(db_session, "OFFSITE1")

    assert all("guests" not in table for table in summary["tables"])

def test_seating_summary_unknown_event(db_session):
    assert SeatingService.get_seating_summary(db_session, "NOPE") is None

def test_clustering_report_flags_crowded_tables(db_session):
    event = Event(name="Eng Day", organizer_email="a@example.com", public_code="ENG1", table_size=4)
    db_session.add(event)
    db_session.flush()
    for i in range(10):
        db_session.add(Guest(event_id=event.id, name=f"Engineer {i}", department="Engineering"))
    db_session.commit()

    SeatingService.assign_event(db_session, event.id)
    report = SeatingService.get_clustering_report(db_session, event.id)

    assert sorted(report) == [1, 2, 3]
    assert all(r["has_clustering"] for r in report.values())

def test_guest_seating_info_by_check_in_id(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)
    ada = next(g for g in offsite_event.guests if g.name == "Ada")

    info = SeatingService.get_guest_seating_info(db_session, ada.check_in_id)

    assert info.guest_name == "Ada"
    assert info.table_number == ada.table_number
    assert info.checked_in is True
    mates = {m["name"] for m in info.table_mates}
    expected = {g.name for g in offsite_event.guests
                if g.table_number == ada.table_number and g.name != "Ada"}
    assert mates == expected
    assert info.round_tables == [{"round_number": 1, "table_number": ada.table_number}]

def test_guest_seating_info_unknown_code(db_session, offsite_event):
    assert SeatingService.get_guest_seating_info(db_session, "missing") is None

def test_to_event_seating_groups_guests_by_table(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)
    db_session.refresh(offsite_event)

    seating = SeatingService.to_event_seating(offsite_event)

    assert seating.is_assigned
    assert len(seating.guests) == 10
    for table in seating.tables:
        assert all(g.table_number == table.table_number for g in table.guests)
    assert sum(len(t.guests) for t in seating.tables) == 10

def test_update_table_size(db_session, offsite_event):
    result = SeatingService.update_table_size(db_session, offsite_event.id, 5)

    assert result == {"table_size": 5, "needs_reassignment": False}
    SeatingService.assign_event(db_session, offsite_event.id)
    assert db_session.query(Table).count() == 2

def test_update_table_size_rejects_zero(db_session, offsite_event):
    with pytest.raises(InvalidConfiguration):
        SeatingService.update_table_size(db_session, offsite_event.id, 0)

    db_session.refresh(offsite_event)
    assert offsite_event.table_size == 4

def test_update_table_size_flags_existing_seating(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)

    result = SeatingService.update_table_size(db_session, offsite_event.id, 6)

    assert result["needs_reassignment"] is True

def test_start_round_requires_assignment(db_session, offsite_event):
    with pytest.raises(RoundStateError, match="Tables must be assigned first"):
        SeatingService.start_next_round(db_session, offsite_event.id)

def test_rounds_advance_until_completed(db_session, offsite_event):
    offsite_event.number_of_rounds = 2
    db_session.commit()
    SeatingService.assign_event(db_session, offsite_event.id)
    started = datetime(2026, 5, 1, 18, 0)

    assert SeatingService.start_next_round(db_session, offsite_event.id, now=started) == {
        "current_round": 1, "max_rounds": 2}
    assert offsite_event.round_started_at == started
    assert SeatingService.start_next_round(db_session, offsite_event.id)["current_round"] == 2

    with pytest.raises(RoundStateError, match="All rounds have been completed"):
        SeatingService.start_next_round(db_session, offsite_event.id)

def test_end_round_requires_active_round(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)

    with pytest.raises(RoundStateError, match="No active round to end"):
        SeatingService.end_current_round(db_session, offsite_event.id)

def test_end_round_keeps_round_number(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)
    SeatingService.start_next_round(db_session, offsite_event.id)

    assert SeatingService.end_current_round(db_session, offsite_event.id) == {"ended_round": 1}
    assert offsite_event.current_round == 1
    assert offsite_event.round_started_at is None

def test_reset_rounds_keeps_tables(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)
    SeatingService.start_next_round(db_session, offsite_event.id)

    SeatingService.reset_rounds(db_session, offsite_event.id)

    assert offsite_event.current_round == 0
    assert offsite_event.round_started_at is None
    assert offsite_event.is_assigned
    assert db_session.query(Table).count() == 3

def test_pause_and_resume_keep_remaining_time(db_session, offsite_event):
    offsite_event.round_duration = 30
    db_session.commit()
    SeatingService.assign_event(db_session, offsite_event.id)
    started = datetime(2026, 5, 1, 18, 0)
    SeatingService.start_next_round(db_session, offsite_event.id, now=started)

    paused = SeatingService.pause_round(db_session, offsite_event.id, now=started + timedelta(minutes=10))
    assert paused == {"remaining_ms": 20 * 60 * 1000}
    assert offsite_event.is_paused

    with pytest.raises(RoundStateError, match="already paused"):
        SeatingService.pause_round(db_session, offsite_event.id)

    resumed_at = started + timedelta(hours=1)
    SeatingService.resume_round(db_session, offsite_event.id, now=resumed_at)

    assert not offsite_event.is_paused
    assert offsite_event.paused_time_remaining is None
    assert offsite_event.round_started_at == resumed_at - timedelta(minutes=10)

def test_pause_needs_a_timer(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)
    SeatingService.start_next_round(db_session, offsite_event.id)

    with pytest.raises(RoundStateError, match="no timer"):
        SeatingService.pause_round(db_session, offsite_event.id)

def test_resume_requires_pause(db_session, offsite_event):
    with pytest.raises(RoundStateError, match="not paused"):
        SeatingService.resume_round(db_session, offsite_event.id)

def test_update_round_duration_zero_turns_timer_off(db_session, offsite_event):
    SeatingService.update_round_duration(db_session, offsite_event.id, 15)
    assert offsite_event.round_duration == 15

    assert SeatingService.update_round_duration(db_session, offsite_event.id, 0) == {"round_duration": None}

def test_reassigning_clears_running_round(db_session, offsite_event):
    SeatingService.assign_event(db_session, offsite_event.id)
    SeatingService.start_next_round(db_session, offsite_event.id)

    SeatingService.assign_event(db_session, offsite_event.id)

    assert offsite_event.current_round == 0
    assert offsite_event.round_started_at is None

def test_round_operations_on_unknown_event(db_session):
    assert SeatingService.start_next_round(db_session, 999) is None
    assert SeatingService.update_table_size(db_session, 999, 4) is None
