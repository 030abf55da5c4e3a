# backend/classbook/models/fitness_class.py
"""
Class model: one scheduled session on one day.

A multi-day schedule request materializes one row per calendar day, so every
row is self-contained (date, window, capacity) and can be edited or cancelled
on its own.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import cast

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ClassStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    INACTIVE = "inactive"


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ALL_LEVELS = "all_levels"


class FitnessClass(Base):
    """Scheduled class instance. Only active classes take bookings or block the calendar."""

    __tablename__ = "classes"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    instructor_id = Column(String(26), ForeignKey("instructors.id"), nullable=False)

    name = Column(String(255), nullable=False)
    class_type = Column(String(50), nullable=False, default="general")
    description = Column(Text, nullable=True)

    scheduled_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    max_capacity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    status = Column(String(20), nullable=False, default=ClassStatus.ACTIVE.value, index=True)

    # Descriptive metadata, opaque to scheduling
    location = Column(String(255), nullable=True)
    room = Column(String(100), nullable=True)
    equipment_needed = Column(JSON, nullable=True)
    difficulty_level = Column(String(20), nullable=True, default=DifficultyLevel.ALL_LEVELS.value)
    tags = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    instructor = relationship("Instructor", back_populates="classes")
    bookings = relationship("Booking", back_populates="fitness_class", passive_deletes=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'cancelled', 'completed', 'inactive')",
            name="ck_classes_status",
        ),
        CheckConstraint(
            "difficulty_level IS NULL OR difficulty_level IN "
            "('beginner', 'intermediate', 'advanced', 'all_levels')",
            name="ck_classes_difficulty_level",
        ),
        CheckConstraint("max_capacity >= 1", name="check_capacity_positive"),
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        Index("ix_classes_instructor_date", "instructor_id", "scheduled_date"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == ClassStatus.ACTIVE.value

    def is_future(self, today: date) -> bool:
        """True when the class runs strictly after ``today``."""
        return cast(date, self.scheduled_date) > today

    def __repr__(self) -> str:
        return (
            f"<FitnessClass {self.id}: {self.name} instructor={self.instructor_id} "
            f"date={self.scheduled_date} time={self.start_time}-{self.end_time} "
            f"status={self.status}>"
        )
