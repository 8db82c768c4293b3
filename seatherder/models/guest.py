"""
Guest model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from seatherder.core.db import Base

class Guest(Base):
    __tablename__ = "guests"
    
    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    name = Column(String(255), nullable=False)
    department = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    table_number = Column(Integer, nullable=True)
    check_in_id = Column(String(64), unique=True, nullable=True, index=True)
    checked_in = Column(Boolean, default=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    event = relationship("Event", back_populates="guests")
    round_assignments = relationship("GuestRoundAssignment", back_populates="guest",
                                     cascade="all, delete-orphan")
