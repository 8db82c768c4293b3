"""
Seating engine value types
"""

from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

GuestId = Union[int, str]

class SeatGuest(BaseModel):
    """A guest as seen by the table assignment engine"""
    id: GuestId
    name: str = Field(min_length=1)
    department: Optional[str] = None
    table_number: Optional[int] = None
    check_in_id: Optional[str] = None
    checked_in: bool = False
    
    class Config:
        from_attributes = True

class TableAssignment(BaseModel):
    """A table and the guests seated at it"""
    table_number: int
    check_in_id: str
    guests: List[SeatGuest] = []

class EventSeating(BaseModel):
    """Seating state of a whole event"""
    id: GuestId
    name: str
    table_size: int = 8
    guests: List[SeatGuest] = []
    tables: List[TableAssignment] = []
    is_assigned: bool = False
    number_of_rounds: int = 1
    current_round: int = 0

class DepartmentCluster(BaseModel):
    """Department with too many guests at one table"""
    department: str
    count: int

class ClusteringReport(BaseModel):
    """Clustering check result for a single table"""
    has_clustering: bool
    clusters: List[DepartmentCluster] = []

class RoundAssignment(BaseModel):
    """Table number of every guest for one rotation round"""
    round_number: int
    seats: Dict[GuestId, int] = {}

class RotationPlan(BaseModel):
    """Round one seating plus the table of every guest in every round"""
    guests: List[SeatGuest] = []
    tables: List[TableAssignment] = []
    rounds: List[RoundAssignment] = []

ConstraintType = Literal["pin", "repel", "attract"]

class SeatConstraint(BaseModel):
    """Pin a guest to a table, or keep two guests apart or together"""
    id: Optional[int] = None
    type: ConstraintType
    guest_ids: List[GuestId]
    table_number: Optional[int] = None
    reason: Optional[str] = None

    class Config:
        from_attributes = True

class ConstraintViolation(BaseModel):
    """A constraint the stored arrangement does not honour; round 0 means every round"""
    type: ConstraintType
    round_number: int
    constraint_id: Optional[int] = None
    description: str

class ConstraintConflict(BaseModel):
    """Constraints that cannot all be satisfied together"""
    constraint_ids: List[Optional[int]]
    message: str
