"""
Seating constraint model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from seatherder.core.db import Base

class SeatingConstraint(Base):
    __tablename__ = "seating_constraints"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    type = Column(String(16), nullable=False)  # pin, repel or attract
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False)
    other_guest_id = Column(Integer, ForeignKey("guests.id"), nullable=True)  # repel/attract only
    table_number = Column(Integer, nullable=True)  # pin only
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="constraints")

    @property
    def guest_ids(self):
        if self.other_guest_id is None:
            return [self.guest_id]
        return [self.guest_id, self.other_guest_id]
