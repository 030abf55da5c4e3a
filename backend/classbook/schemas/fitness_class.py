# backend/classbook/schemas/fitness_class.py
"""
Class schemas.

Request fields are deliberately permissive: the scheduler validates them in a
fixed order and reports a specific error code for the first failure, so the
schema only coerces types.
"""

from datetime import date, time
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_serializer

from ..core.time_windows import format_hhmm
from ..models.fitness_class import ClassStatus, DifficultyLevel
from ._strict_base import StrictModel, StrictRequestModel


class ClassScheduleRequest(StrictRequestModel):
    """Template materialized into one class per day from start_date to end_date."""

    name: Optional[str] = None
    instructor_id: Optional[str] = None
    class_type: str = Field("general", max_length=50)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = Field(None, description="24-hour HH:MM")
    duration_minutes: Optional[int] = None
    max_capacity: Optional[int] = None
    price: Decimal = Field(Decimal("0"), ge=0)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    room: Optional[str] = Field(None, max_length=100)
    equipment_needed: List[str] = Field(default_factory=list)
    difficulty_level: DifficultyLevel = DifficultyLevel.ALL_LEVELS
    tags: List[str] = Field(default_factory=list)


class ClassUpdate(StrictRequestModel):
    """
    Partial class update. Only fields explicitly sent are applied.

    end_time is never accepted; it is recomputed from start_time and duration.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    instructor_id: Optional[str] = None
    class_type: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    scheduled_date: Optional[date] = None
    start_time: Optional[str] = Field(None, description="24-hour HH:MM")
    duration_minutes: Optional[int] = None
    max_capacity: Optional[int] = None
    price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[ClassStatus] = None
    location: Optional[str] = Field(None, max_length=255)
    room: Optional[str] = Field(None, max_length=100)
    equipment_needed: Optional[List[str]] = None
    difficulty_level: Optional[DifficultyLevel] = None
    tags: Optional[List[str]] = None


class ClassFilters(StrictRequestModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    instructor_id: Optional[str] = None
    status: Optional[ClassStatus] = None
    class_type: Optional[str] = None
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


class ClassResponse(StrictModel):
    id: str
    instructor_id: str
    name: str
    class_type: str
    description: Optional[str] = None
    scheduled_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    max_capacity: int
    price: Decimal
    status: str
    location: Optional[str] = None
    room: Optional[str] = None
    equipment_needed: Optional[List[str]] = None
    difficulty_level: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_serializer("start_time", "end_time")
    def serialize_hhmm(self, value: time) -> str:
        return format_hhmm(value)

    @field_serializer("price")
    def serialize_price(self, value: Decimal) -> float:
        return float(value)
