"""
Event model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from seatherder.core.config import settings
from seatherder.core.db import Base

class Event(Base):
    __tablename__ = "events"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=True)
    organizer_email = Column(String(255), nullable=False)
    public_code = Column(String(50), unique=True, nullable=False, index=True)
    table_size = Column(Integer, nullable=False, default=settings.DEFAULT_TABLE_SIZE)
    number_of_rounds = Column(Integer, nullable=False, default=1)
    is_assigned = Column(Boolean, nullable=False, default=False)
    current_round = Column(Integer, nullable=False, default=0)  # 0 = rotation not started
    round_duration = Column(Integer, nullable=True)  # minutes; None = no timer
    round_started_at = Column(DateTime, nullable=True)
    is_paused = Column(Boolean, nullable=False, default=False)
    paused_time_remaining = Column(Integer, nullable=True)  # milliseconds
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    tables = relationship("Table", back_populates="event", cascade="all, delete-orphan",
                          order_by="Table.table_number")
    guests = relationship("Guest", back_populates="event", cascade="all, delete-orphan",
                          order_by="Guest.id")
    round_assignments = relationship("GuestRoundAssignment", back_populates="event",
                                     cascade="all, delete-orphan")
    constraints = relationship("SeatingConstraint", back_populates="event",
                               cascade="all, delete-orphan")
