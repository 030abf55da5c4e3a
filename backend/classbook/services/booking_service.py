# backend/classbook/services/booking_service.py
"""
Booking Service for the Classbook engine.

Handles the booking lifecycle:
- Admission against a class (one live booking per member, capacity ceiling)
- Status transitions per the lifecycle table
- Typed partial updates, including member contact changes
- Deletion of bookings that were never attended

Admission runs inside one transaction with the class row locked, so the
duplicate check, the seat count and the insert see a consistent picture even
under concurrent requests for the last seat.
"""

from datetime import date
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    CapacityExceededException,
    DuplicateBookingException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from ..core.time_windows import Clock
from ..models.booking import Booking, BookingStatus, can_transition
from ..models.fitness_class import FitnessClass
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..schemas.booking import BookingCreate, BookingFilters, BookingUpdate
from .base import BaseService
from .member_resolver import MemberResolverService

logger = logging.getLogger(__name__)

ACTIVE_BOOKING_INDEX = "uq_bookings_class_member_active"


def _is_duplicate_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    # Postgres reports the index name; SQLite reports the indexed columns
    return ACTIVE_BOOKING_INDEX in message or "bookings.class_id, bookings.member_id" in message


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Centralizes booking business logic and coordinates with the member
    resolver. Every public operation is one transaction.
    """

    def __init__(
        self,
        db: Session,
        member_resolver: Optional[MemberResolverService] = None,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            member_resolver: Optional resolver (shares the session)
            clock: Optional "today" provider
            settings: Optional settings override
        """
        super().__init__(db, clock=clock)
        self.settings = settings or default_settings
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.member_resolver = member_resolver or MemberResolverService(db, clock=self.clock)

    # Helpers

    def _get_booking_or_404(self, booking_id: str, for_update: bool = False) -> Booking:
        booking = self.repository.get_by_id(booking_id, for_update=for_update)
        if not booking:
            raise NotFoundException(f"Booking {booking_id} not found", code="BOOKING_NOT_FOUND")
        return booking

    def _get_class_or_404(self, class_id: str, for_update: bool = False) -> FitnessClass:
        fitness_class = self.class_repository.get_by_id(class_id, for_update=for_update)
        if not fitness_class:
            raise NotFoundException(f"Class {class_id} not found", code="CLASS_NOT_FOUND")
        return fitness_class

    def _validate_participation_date(self, participation_date: date, fitness_class: FitnessClass) -> None:
        if participation_date < self.today():
            raise ValidationException(
                "Participation date cannot be in the past",
                code="BOOKING_PAST_DATE",
                details={"participation_date": participation_date.isoformat()},
            )
        if participation_date != fitness_class.scheduled_date:
            raise ValidationException(
                "Participation date must match the class date",
                code="BOOKING_DATE_OUT_OF_RANGE",
                details={
                    "participation_date": participation_date.isoformat(),
                    "scheduled_date": fitness_class.scheduled_date.isoformat(),
                },
            )

    def _ensure_no_live_booking(
        self, class_id: str, member_id: str, exclude_booking_id: Optional[str] = None
    ) -> None:
        if self.repository.find_active_booking(class_id, member_id, exclude_booking_id):
            prometheus_metrics.inc_booking_rejected("duplicate")
            raise DuplicateBookingException(class_id, member_id)

    def _transition(
        self,
        booking: Booking,
        target: BookingStatus,
        *,
        cancelled_by: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        """Apply one status change after checking it against the lifecycle table."""
        current = booking.status
        if not can_transition(current, target.value):
            raise InvalidTransitionException(current, target.value)

        if target is BookingStatus.CONFIRMED:
            booking.confirm()
        elif target is BookingStatus.ATTENDED:
            booking.attend()
        elif target is BookingStatus.CANCELLED:
            booking.cancel(cancelled_by=cancelled_by, reason=reason)
        elif target is BookingStatus.NO_SHOW:
            booking.mark_no_show()

        prometheus_metrics.inc_booking_transition(current, target.value)

    # Admission

    @BaseService.measure_operation("create_booking")
    def create_booking(self, data: BookingCreate) -> Booking:
        """
        Create a pending booking for a member in a class.

        Args:
            data: Booking request; the member is resolved by email

        Returns:
            The created booking

        Raises:
            NotFoundException: Class does not exist
            ValidationException: Class not active, or participation date invalid
            DuplicateBookingException: Member already holds a live booking for the class
            CapacityExceededException: No seats left
        """
        self.log_operation(
            "create_booking",
            class_id=data.class_id,
            member_email=data.member_email,
            participation_date=str(data.participation_date),
        )

        with self.transaction():
            # Lock first: everything below must see a stable seat count
            fitness_class = self._get_class_or_404(data.class_id, for_update=True)
            if not fitness_class.is_active:
                raise ValidationException(
                    "Class is not available for booking",
                    code="CLASS_NOT_ACTIVE",
                    details={"class_id": fitness_class.id, "status": fitness_class.status},
                )
            self._validate_participation_date(data.participation_date, fitness_class)

            member = self.member_resolver.resolve_in_transaction(
                data.member_name, data.member_email, data.member_phone
            )

            self._ensure_no_live_booking(fitness_class.id, member.id)

            seats_taken = self.repository.count_seats_taken(fitness_class.id)
            if seats_taken >= fitness_class.max_capacity:
                prometheus_metrics.inc_booking_rejected("class_full")
                raise CapacityExceededException(fitness_class.id, fitness_class.max_capacity)

            try:
                booking = self.repository.create(
                    class_id=fitness_class.id,
                    member_id=member.id,
                    participation_date=data.participation_date,
                    notes=data.notes,
                    status=BookingStatus.PENDING.value,
                )
            except IntegrityError as exc:
                if not _is_duplicate_violation(exc):
                    raise
                prometheus_metrics.inc_booking_rejected("duplicate")
                raise DuplicateBookingException(fitness_class.id, member.id) from exc

        prometheus_metrics.inc_booking_created()
        self.logger.info(
            f"Created booking {booking.id} for member {member.id} in class {fitness_class.id}",
            extra={"seats_taken": seats_taken + 1, "max_capacity": fitness_class.max_capacity},
        )
        return booking

    # Updates

    @BaseService.measure_operation("update_booking")
    def update_booking(self, booking_id: str, update: BookingUpdate) -> Booking:
        """
        Apply a typed partial update to a booking.

        Status changes follow the lifecycle table. A new member email resolves
        (or creates) that member and moves the booking to them; the same email
        only overwrites name and phone.
        """
        fields: Dict[str, Any] = update.model_dump(exclude_unset=True)
        self.log_operation("update_booking", booking_id=booking_id, fields=sorted(fields))

        with self.transaction():
            booking = self._get_booking_or_404(booking_id, for_update=True)
            fitness_class = self._get_class_or_404(booking.class_id, for_update=True)

            target: Optional[BookingStatus] = fields.get("status")
            if target is not None and not can_transition(booking.status, target.value):
                raise InvalidTransitionException(booking.status, target.value)

            if fields.get("cancellation_reason") is not None and target is not BookingStatus.CANCELLED:
                raise ValidationException(
                    "A cancellation reason can only be given when cancelling",
                    code="BOOKING_INVALID_CANCELLATION_REASON",
                )

            changes: Dict[str, Any] = {}
            if "notes" in fields:
                changes["notes"] = fields["notes"]

            if fields.get("participation_date") is not None:
                self._validate_participation_date(fields["participation_date"], fitness_class)
                changes["participation_date"] = fields["participation_date"]

            if any(key in fields for key in ("member_name", "member_email", "member_phone")):
                member = booking.member
                new_email = fields.get("member_email")
                if new_email and new_email != member.email:
                    new_member = self.member_resolver.resolve_in_transaction(
                        fields.get("member_name") or member.name,
                        new_email,
                        fields.get("member_phone"),
                    )
                    if new_member.id != booking.member_id:
                        self._ensure_no_live_booking(
                            booking.class_id, new_member.id, exclude_booking_id=booking.id
                        )
                        changes["member_id"] = new_member.id
                else:
                    self.member_resolver.update_contact(
                        member,
                        name=fields.get("member_name"),
                        phone=fields.get("member_phone"),
                    )

            if changes:
                try:
                    self.repository.update_fields(booking, changes)
                except IntegrityError as exc:
                    if not _is_duplicate_violation(exc):
                        raise
                    raise DuplicateBookingException(booking.class_id, changes["member_id"]) from exc

            if target is not None:
                self._transition(booking, target, reason=fields.get("cancellation_reason"))

        self.logger.info(f"Updated booking {booking_id}", extra={"fields": sorted(fields)})
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        reason: Optional[str] = None,
        cancelled_by: Optional[str] = None,
    ) -> Booking:
        """
        Cancel a pending or confirmed booking, releasing its seat.

        Raises:
            NotFoundException: Booking does not exist
            InvalidTransitionException: Booking is attended, cancelled or no-show
        """
        self.log_operation("cancel_booking", booking_id=booking_id, cancelled_by=cancelled_by)
        with self.transaction():
            booking = self._get_booking_or_404(booking_id, for_update=True)
            self._transition(
                booking, BookingStatus.CANCELLED, cancelled_by=cancelled_by, reason=reason
            )
        return booking

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, booking_id: str) -> Booking:
        self.log_operation("confirm_booking", booking_id=booking_id)
        with self.transaction():
            booking = self._get_booking_or_404(booking_id, for_update=True)
            self._transition(booking, BookingStatus.CONFIRMED)
        return booking

    @BaseService.measure_operation("mark_attended")
    def mark_attended(self, booking_id: str) -> Booking:
        """
        Record attendance.

        A pending booking is confirmed first and then attended, so both
        steps are legal transitions and both timestamps are stamped.
        """
        self.log_operation("mark_attended", booking_id=booking_id)
        with self.transaction():
            booking = self._get_booking_or_404(booking_id, for_update=True)
            if booking.status == BookingStatus.PENDING.value:
                self._transition(booking, BookingStatus.CONFIRMED)
            self._transition(booking, BookingStatus.ATTENDED)
        return booking

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(self, booking_id: str) -> Booking:
        self.log_operation("mark_no_show", booking_id=booking_id)
        with self.transaction():
            booking = self._get_booking_or_404(booking_id, for_update=True)
            self._transition(booking, BookingStatus.NO_SHOW)
        return booking

    @BaseService.measure_operation("delete_booking")
    def delete_booking(self, booking_id: str) -> None:
        """Physically remove a booking. Attended bookings are kept for history."""
        self.log_operation("delete_booking", booking_id=booking_id)
        with self.transaction():
            booking = self._get_booking_or_404(booking_id, for_update=True)
            if booking.status == BookingStatus.ATTENDED.value:
                raise ValidationException(
                    "Cannot delete an attended booking",
                    code="BOOKING_ATTENDED_DELETE",
                    details={"booking_id": booking_id},
                )
            self.repository.delete(booking_id)
        self.logger.info(f"Deleted booking {booking_id}")

    # Reads

    @BaseService.measure_operation("get_booking")
    def get_booking(self, booking_id: str) -> Booking:
        with self.transaction():
            booking = self.repository.get_booking_with_details(booking_id)
        if not booking:
            raise NotFoundException(f"Booking {booking_id} not found", code="BOOKING_NOT_FOUND")
        return booking

    @BaseService.measure_operation("list_bookings")
    def list_bookings(self, filters: Optional[BookingFilters] = None) -> List[Booking]:
        filters = filters or BookingFilters()
        with self.transaction():
            return self.repository.list_bookings(
                class_id=filters.class_id,
                member_id=filters.member_id,
                status=filters.status.value if filters.status else None,
                member_name=filters.member_name,
                start_date=filters.start_date,
                end_date=filters.end_date,
                limit=min(filters.limit, self.settings.max_page_size),
                offset=filters.offset,
            )
