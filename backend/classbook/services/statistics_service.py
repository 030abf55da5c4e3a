# backend/classbook/services/statistics_service.py
"""
Statistics Service: read-only booking aggregates.

Counts come from a single GROUP BY per request. Reads are idempotent, so
transient store failures are retried before surfacing as StoreUnavailable.
"""

from datetime import date
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import NotFoundException
from ..core.time_windows import Clock
from ..database import with_db_retry
from ..models.booking import CAPACITY_STATUSES, BookingStatus
from ..repositories import RepositoryFactory
from ..schemas.statistics import BookingStatistics, ClassStatistics
from .base import BaseService

logger = logging.getLogger(__name__)


def attendance_rate(attended: int, confirmed: int) -> float:
    """attended / (confirmed + attended), 0.0 when nobody confirmed or attended."""
    denominator = confirmed + attended
    if denominator == 0:
        return 0.0
    return round(attended / denominator, 2)


def _ratio(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator, 2)


def _counts_payload(status_counts: Dict[str, int]) -> Dict[str, int]:
    return {
        "total": sum(status_counts.values()),
        "pending": status_counts.get(BookingStatus.PENDING.value, 0),
        "confirmed": status_counts.get(BookingStatus.CONFIRMED.value, 0),
        "attended": status_counts.get(BookingStatus.ATTENDED.value, 0),
        "cancelled": status_counts.get(BookingStatus.CANCELLED.value, 0),
        "no_show": status_counts.get(BookingStatus.NO_SHOW.value, 0),
    }


class StatisticsService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db, clock=clock)
        self.settings = settings or default_settings
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)

    def _read(self, op_name: str, func):
        """Run an idempotent read in its own transaction, retrying transient failures."""

        def _attempt():
            with self.transaction():
                return func()

        return with_db_retry(op_name, _attempt, max_attempts=self.settings.db_retry_attempts)

    @BaseService.measure_operation("get_class_statistics")
    def get_class_statistics(self, class_id: str) -> ClassStatistics:
        """
        Booking counts, rates and remaining seats for one class.

        Raises:
            NotFoundException: Class does not exist
        """

        def _load():
            fitness_class = self.class_repository.get_by_id(class_id)
            if not fitness_class:
                raise NotFoundException(f"Class {class_id} not found", code="CLASS_NOT_FOUND")
            return fitness_class.max_capacity, self.booking_repository.count_bookings_by_status(
                class_id=class_id
            )

        max_capacity, status_counts = self._read("get_class_statistics", _load)
        counts = _counts_payload(status_counts)
        seats_taken = sum(status_counts.get(s, 0) for s in CAPACITY_STATUSES)

        return ClassStatistics(
            class_id=class_id,
            max_capacity=max_capacity,
            attendance_rate=attendance_rate(counts["attended"], counts["confirmed"]),
            cancellation_rate=_ratio(counts["cancelled"], counts["total"]),
            capacity_utilization=_ratio(seats_taken, max_capacity),
            remaining_capacity=max(max_capacity - seats_taken, 0),
            **counts,
        )

    @BaseService.measure_operation("get_booking_statistics")
    def get_booking_statistics(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        class_id: Optional[str] = None,
    ) -> BookingStatistics:
        """Counts and rates over bookings whose participation date falls in the window."""
        status_counts = self._read(
            "get_booking_statistics",
            lambda: self.booking_repository.count_bookings_by_status(
                class_id=class_id, start_date=start_date, end_date=end_date
            ),
        )
        counts = _counts_payload(status_counts)

        return BookingStatistics(
            start_date=start_date,
            end_date=end_date,
            class_id=class_id,
            attendance_rate=attendance_rate(counts["attended"], counts["confirmed"]),
            cancellation_rate=_ratio(counts["cancelled"], counts["total"]),
            **counts,
        )
