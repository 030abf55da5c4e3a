# backend/classbook/models/__init__.py
"""
Database models for the Classbook engine.

Importing this package registers every table on ``Base.metadata``.
"""

from .booking import (
    BOOKING_TRANSITIONS,
    CAPACITY_STATUSES,
    Booking,
    BookingStatus,
    can_transition,
)
from .fitness_class import ClassStatus, DifficultyLevel, FitnessClass
from .instructor import Instructor, InstructorStatus
from .member import Member, MemberStatus

__all__ = [
    "BOOKING_TRANSITIONS",
    "CAPACITY_STATUSES",
    "Booking",
    "BookingStatus",
    "ClassStatus",
    "DifficultyLevel",
    "FitnessClass",
    "Instructor",
    "InstructorStatus",
    "Member",
    "MemberStatus",
    "can_transition",
]
