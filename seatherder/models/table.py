"""
Table model
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from seatherder.core.db import Base

class Table(Base):
    __tablename__ = "tables"
    
    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    table_number = Column(Integer, nullable=False)
    check_in_id = Column(String(64), unique=True, nullable=False, index=True)
    
    # Relationships
    event = relationship("Event", back_populates="tables")
    
    __table_args__ = (UniqueConstraint("event_id", "table_number"),)
