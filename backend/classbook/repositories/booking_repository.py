# backend/classbook/repositories/booking_repository.py
"""
Booking Repository for the Classbook engine.

Implements all data access operations for booking management:
- Admission queries (live booking per member, seats taken)
- Filtered listing
- Status aggregation for statistics
- Typed partial updates through a fixed column table
"""

from datetime import date
import logging
from typing import Any, Dict, List, Mapping, Optional, cast

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.booking import CAPACITY_STATUSES, Booking, BookingStatus
from ..models.member import Member
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

# Field name on BookingUpdate -> column on Booking. Member contact fields are
# resolved by the service and never written here directly.
BOOKING_UPDATE_COLUMNS: Dict[str, str] = {
    "notes": "notes",
    "participation_date": "participation_date",
    "member_id": "member_id",
    "cancellation_reason": "cancellation_reason",
}


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_booking_with_details(self, booking_id: str) -> Optional[Booking]:
        """
        Get a booking with its class and member loaded.

        Args:
            booking_id: The booking ID

        Returns:
            The booking with relationships, or None if not found
        """
        try:
            booking: Booking | None = (
                self.db.query(Booking)
                .options(joinedload(Booking.member), joinedload(Booking.fitness_class))
                .filter(Booking.id == booking_id)
                .first()
            )
            return booking
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking details: {str(e)}")
            raise RepositoryException(f"Failed to get booking details: {str(e)}") from e

    # Admission queries

    def find_active_booking(
        self, class_id: str, member_id: str, exclude_booking_id: Optional[str] = None
    ) -> Optional[Booking]:
        """Return the member's non-cancelled booking for the class, if any."""
        query = self._build_query().filter(
            Booking.class_id == class_id,
            Booking.member_id == member_id,
            Booking.status != BookingStatus.CANCELLED.value,
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        try:
            return cast(Optional[Booking], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking duplicate booking: {str(e)}")
            raise RepositoryException(f"Failed to check duplicate booking: {str(e)}") from e

    def count_seats_taken(self, class_id: str) -> int:
        """Count bookings that occupy a seat (pending, confirmed, attended)."""
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.class_id == class_id,
            Booking.status.in_(sorted(CAPACITY_STATUSES)),
        )
        return int(self._execute_scalar(query) or 0)

    def count_non_cancelled(self, class_id: str) -> int:
        query = self.db.query(func.count(Booking.id)).filter(
            Booking.class_id == class_id,
            Booking.status != BookingStatus.CANCELLED.value,
        )
        return int(self._execute_scalar(query) or 0)

    def move_participation_date(self, class_id: str, new_date: date) -> int:
        """Point every booking of a rescheduled class at the class's new date."""
        try:
            moved = (
                self.db.query(Booking)
                .filter(Booking.class_id == class_id)
                .update({Booking.participation_date: new_date}, synchronize_session="fetch")
            )
            self.db.flush()
            return int(moved)
        except SQLAlchemyError as e:
            self.logger.error(f"Error moving bookings of class {class_id}: {str(e)}")
            raise RepositoryException(f"Failed to move bookings: {str(e)}") from e

    def delete_cancelled_for_class(self, class_id: str) -> int:
        """Remove cancelled bookings so their class row can be deleted."""
        try:
            deleted = (
                self.db.query(Booking)
                .filter(
                    Booking.class_id == class_id,
                    Booking.status == BookingStatus.CANCELLED.value,
                )
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return int(deleted)
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting cancelled bookings: {str(e)}")
            raise RepositoryException(f"Failed to delete cancelled bookings: {str(e)}") from e

    # Listing

    def list_bookings(
        self,
        *,
        class_id: Optional[str] = None,
        member_id: Optional[str] = None,
        status: Optional[str] = None,
        member_name: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Booking]:
        """
        List bookings, newest participation date first.

        ``member_name`` is a case-insensitive substring match.
        """
        query = self.db.query(Booking).options(joinedload(Booking.member))
        if class_id:
            query = query.filter(Booking.class_id == class_id)
        if member_id:
            query = query.filter(Booking.member_id == member_id)
        if status:
            query = query.filter(Booking.status == status)
        if member_name:
            query = query.join(Member, Member.id == Booking.member_id).filter(
                Member.name.ilike(f"%{member_name}%")
            )
        if start_date:
            query = query.filter(Booking.participation_date >= start_date)
        if end_date:
            query = query.filter(Booking.participation_date <= end_date)

        query = query.order_by(Booking.participation_date.desc(), Booking.created_at.desc(), Booking.id)
        return cast(List[Booking], self._execute_query(query.offset(offset).limit(limit)))

    # Statistics

    def count_bookings_by_status(
        self,
        *,
        class_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, int]:
        """
        Count bookings grouped by status.

        Returns:
            Dictionary with every status as key (zero when absent) and count as value
        """
        try:
            query = self.db.query(Booking.status, func.count(Booking.id).label("count"))
            if class_id:
                query = query.filter(Booking.class_id == class_id)
            if start_date:
                query = query.filter(Booking.participation_date >= start_date)
            if end_date:
                query = query.filter(Booking.participation_date <= end_date)

            status_counts = {status.value: 0 for status in BookingStatus}
            for row in query.group_by(Booking.status).all():
                if row.status:
                    status_counts[row.status] = row.count
            return status_counts
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting bookings by status: {str(e)}")
            raise RepositoryException(f"Failed to count bookings: {str(e)}") from e

    # Updates

    def update_fields(self, booking: Booking, fields: Mapping[str, Any]) -> Booking:
        """Apply a typed partial update through the fixed column table."""
        unknown = set(fields) - set(BOOKING_UPDATE_COLUMNS)
        if unknown:
            raise RepositoryException(f"Unknown booking fields: {sorted(unknown)}")
        changes = {BOOKING_UPDATE_COLUMNS[key]: value for key, value in fields.items()}
        self.apply_changes(booking, changes)
        if "member_id" in changes:
            # Relationship still points at the previous member
            self.db.expire(booking, ["member"])
        return booking
