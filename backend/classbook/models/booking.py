# backend/classbook/models/booking.py
"""
Booking model.

A booking reserves one seat in one class for one member. Status follows a
small lifecycle table; the service layer checks every change against
``BOOKING_TRANSITIONS`` before calling the mutators on the model.
"""

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Seat held, awaiting confirmation
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    ATTENDED = "attended"
    NO_SHOW = "no_show"


BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.ATTENDED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.ATTENDED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

# Statuses that occupy a seat
CAPACITY_STATUSES: FrozenSet[str] = frozenset(
    {BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value, BookingStatus.ATTENDED.value}
)

DEFAULT_CANCELLED_BY = "system"


def can_transition(current: str, target: str) -> bool:
    """Check a status change against the lifecycle table."""
    try:
        return BookingStatus(target) in BOOKING_TRANSITIONS[BookingStatus(current)]
    except ValueError:
        return False


class Booking(Base):
    """Seat reservation of a member in a class."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False, index=True)
    member_id = Column(String(26), ForeignKey("members.id"), nullable=False, index=True)

    participation_date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    attended_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation tracking
    cancelled_by = Column(String(100), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    fitness_class = relationship("FitnessClass", back_populates="bookings")
    member = relationship("Member", back_populates="bookings")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'attended', 'no_show')",
            name="ck_bookings_status",
        ),
        Index("ix_bookings_class_member", "class_id", "member_id"),
        # At most one live booking per member per class; cancelled rows do not count
        Index(
            "uq_bookings_class_member_active",
            "class_id",
            "member_id",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: class={self.class_id}, member={self.member_id}, "
            f"date={self.participation_date}, status={self.status}>"
        )

    def confirm(self) -> None:
        """Mark booking as confirmed."""
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} confirmed")

    def attend(self) -> None:
        """Mark booking as attended."""
        self.status = BookingStatus.ATTENDED.value
        self.attended_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} marked as attended")

    def cancel(self, cancelled_by: Optional[str] = None, reason: Optional[str] = None) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancelled_by = cancelled_by or DEFAULT_CANCELLED_BY
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by {self.cancelled_by}")

    def mark_no_show(self) -> None:
        """Mark booking as no-show."""
        self.status = BookingStatus.NO_SHOW.value
        logger.info(f"Booking {self.id} marked as no-show")
