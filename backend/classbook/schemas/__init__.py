# backend/classbook/schemas/__init__.py
"""Pydantic request and response models."""

from .booking import (
    BookingCancel,
    BookingCreate,
    BookingFilters,
    BookingResponse,
    BookingUpdate,
)
from .fitness_class import ClassFilters, ClassResponse, ClassScheduleRequest, ClassUpdate
from .member import MemberResolveRequest, MemberResponse
from .statistics import BookingStatistics, ClassStatistics

__all__ = [
    "BookingCancel",
    "BookingCreate",
    "BookingFilters",
    "BookingResponse",
    "BookingStatistics",
    "BookingUpdate",
    "ClassFilters",
    "ClassResponse",
    "ClassScheduleRequest",
    "ClassStatistics",
    "ClassUpdate",
    "MemberResolveRequest",
    "MemberResponse",
]
