"""
Tests for request schema validation
"""

import pytest
from pydantic import ValidationError

from seatherder.core.config import settings
from seatherder.schemas.event import EventCreate, RoundDurationUpdate, TableSizeUpdate
from seatherder.schemas.guest import GuestUpdate, LookupRequest

@pytest.mark.parametrize("name", ["", "   "])
def test_guest_update_rejects_blank_name(name):
    with pytest.raises(ValidationError):
        GuestUpdate(name=name)

def test_guest_update_rejects_null_name():
    with pytest.raises(ValidationError):
        GuestUpdate.model_validate({"name": None})

def test_guest_update_rejects_null_checked_in():
    with pytest.raises(ValidationError):
        GuestUpdate.model_validate({"checked_in": None})

def test_guest_update_trims_name():
    assert GuestUpdate(name="  Ada  ").name == "Ada"

def test_guest_update_only_carries_sent_fields():
    update = GuestUpdate.model_validate({"department": None})

    assert update.model_dump(exclude_unset=True) == {"department": None}

def test_lookup_requires_a_name():
    with pytest.raises(ValidationError):
        LookupRequest(public_code="MIX1", name="")

def test_event_table_size_defaults_to_setting():
    event = EventCreate(name="Offsite", organizer_email="host@example.com")

    assert event.table_size == settings.DEFAULT_TABLE_SIZE

@pytest.mark.parametrize("table_size", [0, -3])
def test_table_size_update_must_be_positive(table_size):
    with pytest.raises(ValidationError):
        TableSizeUpdate(table_size=table_size)

def test_round_duration_can_be_cleared():
    assert RoundDurationUpdate(round_duration=None).round_duration is None
