"""
Per-round table assignment model
"""

from sqlalchemy import Column, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship

from seatherder.core.db import Base

class GuestRoundAssignment(Base):
    __tablename__ = "guest_round_assignments"
    
    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False)
    round_number = Column(Integer, nullable=False)
    table_number = Column(Integer, nullable=False)
    
    # Relationships
    event = relationship("Event", back_populates="round_assignments")
    guest = relationship("Guest", back_populates="round_assignments")
    
    __table_args__ = (Index("ix_round_assignments_event_round", "event_id", "round_number"),)
