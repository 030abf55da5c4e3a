# backend/classbook/schemas/booking.py
"""
Booking schemas.

BookingUpdate is a typed partial update: ``model_dump(exclude_unset=True)``
yields exactly the fields the caller sent.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import Field, field_validator

from ..models.booking import BookingStatus
from ._strict_base import StrictModel, StrictRequestModel
from .member import MemberResponse


class BookingCreate(StrictRequestModel):
    """Reserve a seat in a class; the member is resolved by email."""

    class_id: str = Field(..., min_length=1)
    member_name: str = Field(..., min_length=1, max_length=255)
    member_email: str = Field(..., min_length=1, max_length=255)
    member_phone: Optional[str] = Field(None, max_length=32)
    participation_date: date
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class BookingUpdate(StrictRequestModel):
    notes: Optional[str] = Field(None, max_length=1000)
    member_name: Optional[str] = Field(None, min_length=1, max_length=255)
    member_email: Optional[str] = Field(None, min_length=1, max_length=255)
    member_phone: Optional[str] = Field(None, max_length=32)
    participation_date: Optional[date] = None
    status: Optional[BookingStatus] = None
    cancellation_reason: Optional[str] = Field(None, max_length=1000)


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=1000)
    cancelled_by: Optional[str] = Field(None, max_length=100)


class BookingFilters(StrictRequestModel):
    class_id: Optional[str] = None
    member_id: Optional[str] = None
    status: Optional[BookingStatus] = None
    member_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


class BookingResponse(StrictModel):
    id: str
    class_id: str
    member_id: str
    participation_date: date
    notes: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    attended_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    member: Optional[MemberResponse] = None
