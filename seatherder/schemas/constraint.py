"""
Seating constraint Pydantic schemas
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from seatherder.schemas.seating import ConstraintType

class ConstraintCreate(BaseModel):
    """Schema for creating a seating constraint"""
    type: ConstraintType
    guest_ids: List[int]
    table_number: Optional[int] = Field(default=None, gt=0)
    reason: Optional[str] = None

class ConstraintResponse(BaseModel):
    """Seating constraint response"""
    id: int
    type: ConstraintType
    guest_ids: List[int]
    table_number: Optional[int] = None
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
