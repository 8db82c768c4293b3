"""
Database models package
"""

from .event import Event
from .table import Table
from .guest import Guest
from .round_assignment import GuestRoundAssignment
from .constraint import SeatingConstraint

__all__ = ["Event", "Table", "Guest", "GuestRoundAssignment", "SeatingConstraint"]
