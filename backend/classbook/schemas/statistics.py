# backend/classbook/schemas/statistics.py
"""Statistics read models."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class BookingCounts(BaseModel):
    total: int = 0
    pending: int = 0
    confirmed: int = 0
    attended: int = 0
    cancelled: int = 0
    no_show: int = 0


class BookingStatistics(BookingCounts):
    """Counts and rates over a participation-date window."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    class_id: Optional[str] = None
    attendance_rate: float = Field(0.0, description="attended / (confirmed + attended)")
    cancellation_rate: float = Field(0.0, description="cancelled / total")


class ClassStatistics(BookingCounts):
    class_id: str
    max_capacity: int
    attendance_rate: float = 0.0
    cancellation_rate: float = 0.0
    capacity_utilization: float = Field(0.0, description="seats taken / max_capacity")
    remaining_capacity: int = 0
