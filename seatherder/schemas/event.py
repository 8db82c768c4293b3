"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field

from seatherder.core.config import settings

class EventCreate(BaseModel):
    """Schema for creating an event"""
    name: str = Field(min_length=1)
    organizer_email: EmailStr
    date: Optional[datetime] = None
    table_size: int = Field(default=settings.DEFAULT_TABLE_SIZE, gt=0)
    number_of_rounds: int = Field(default=1, ge=1)
    round_duration: Optional[int] = Field(default=None, gt=0)

class EventResponse(BaseModel):
    """Basic event response"""
    id: int
    name: str
    date: Optional[datetime] = None
    organizer_email: str
    public_code: str
    table_size: int
    number_of_rounds: int
    is_assigned: bool
    current_round: int = 0
    round_duration: Optional[int] = None
    round_started_at: Optional[datetime] = None
    is_paused: bool = False
    created_at: datetime
    
    class Config:
        from_attributes = True

class EventDetail(EventResponse):
    """Detailed event response with counts"""
    total_guests: int
    total_tables: int
    checked_in_count: int

class RoundsUpdate(BaseModel):
    """Change the number of table rotations"""
    number_of_rounds: int = Field(ge=1)

class TableSizeUpdate(BaseModel):
    """Change the number of seats per table"""
    table_size: int = Field(gt=0)

class RoundDurationUpdate(BaseModel):
    """Change the round timer; null or zero switches the timer off"""
    round_duration: Optional[int] = Field(default=None, ge=0)
    
class SeatingInfo(BaseModel):
    """Seating information for a guest"""
    guest_name: str
    department: Optional[str] = None
    table_number: int
    check_in_id: str
    checked_in: bool
    table_mates: List[dict]  # List of {name, department, checked_in}
    round_tables: List[dict] = []  # List of {round_number, table_number}
