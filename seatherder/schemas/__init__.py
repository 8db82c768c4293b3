"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .guest import *
from .seating import *
from .constraint import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "EventCreate",
    "EventResponse",
    "EventDetail",
    "RoundsUpdate",
    "TableSizeUpdate",
    "RoundDurationUpdate",
    "SeatingInfo",
    "GuestCreate",
    "GuestUpdate",
    "GuestResponse",
    "CheckInRequest",
    "LookupRequest",
    "SeatGuest",
    "TableAssignment",
    "EventSeating",
    "DepartmentCluster",
    "ClusteringReport",
    "RoundAssignment",
    "RotationPlan",
    "SeatConstraint",
    "ConstraintViolation",
    "ConstraintConflict",
    "ConstraintCreate",
    "ConstraintResponse",
]
