"""Integration tests for StatisticsService."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from classbook.core.exceptions import NotFoundException, StoreUnavailableException
from classbook.schemas.booking import BookingCreate
from classbook.services.booking_service import BookingService
from classbook.services.statistics_service import StatisticsService, attendance_rate
from tests.conftest import TOMORROW


@pytest.fixture
def stats(db, clock, test_settings) -> StatisticsService:
    return StatisticsService(db, clock=clock, settings=test_settings)


@pytest.fixture
def bookings(db, clock, test_settings) -> BookingService:
    return BookingService(db, clock=clock, settings=test_settings)


def _book(bookings: BookingService, class_id: str, n: int, participation_date=TOMORROW):
    return bookings.create_booking(
        BookingCreate(
            class_id=class_id,
            member_name=f"Member {n}",
            member_email=f"member{n}@example.com",
            participation_date=participation_date,
        )
    )


def test_attendance_rate_formula():
    assert attendance_rate(0, 0) == 0.0
    assert attendance_rate(3, 1) == 0.75
    assert attendance_rate(1, 2) == 0.33
    assert attendance_rate(0, 4) == 0.0


class TestClassStatistics:
    def test_empty_class(self, stats, make_class):
        class_id = make_class(max_capacity=8)

        result = stats.get_class_statistics(class_id)

        assert result.total == 0
        assert result.attendance_rate == 0.0
        assert result.remaining_capacity == 8
        assert result.capacity_utilization == 0.0

    def test_mixed_statuses(self, stats, bookings, make_class):
        class_id = make_class(max_capacity=10)
        made = [_book(bookings, class_id, n) for n in range(5)]
        bookings.mark_attended(made[0].id)
        bookings.mark_attended(made[1].id)
        bookings.confirm_booking(made[2].id)
        bookings.cancel_booking(made[3].id)

        result = stats.get_class_statistics(class_id)

        assert (result.total, result.pending, result.confirmed) == (5, 1, 1)
        assert (result.attended, result.cancelled, result.no_show) == (2, 1, 0)
        assert result.attendance_rate == 0.67
        assert result.cancellation_rate == 0.2
        assert result.remaining_capacity == 6
        assert result.capacity_utilization == 0.4

    def test_unknown_class(self, stats):
        with pytest.raises(NotFoundException):
            stats.get_class_statistics("missing")


class TestBookingStatistics:
    def test_date_window(self, stats, bookings, make_class):
        later = TOMORROW + timedelta(days=7)
        near_class = make_class()
        far_class = make_class(scheduled_date=later, name="Next Week")
        _book(bookings, near_class, 1)
        _book(bookings, near_class, 2)
        _book(bookings, far_class, 3, participation_date=later)

        assert stats.get_booking_statistics().total == 3
        windowed = stats.get_booking_statistics(start_date=TOMORROW, end_date=TOMORROW)
        assert windowed.total == 2
        assert windowed.pending == 2
        assert stats.get_booking_statistics(class_id=far_class).total == 1

    def test_transient_failure_is_retried(self, stats, bookings, make_class):
        class_id = make_class()
        _book(bookings, class_id, 1)
        real_count = stats.booking_repository.count_bookings_by_status
        calls = []

        def flaky(**kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise OperationalError("SELECT", {}, Exception("database is locked"))
            return real_count(**kwargs)

        with patch.object(stats.booking_repository, "count_bookings_by_status", side_effect=flaky), patch(
            "classbook.database.time.sleep"
        ):
            result = stats.get_booking_statistics()

        assert result.total == 1
        assert len(calls) == 2

    def test_persistent_failure_surfaces_store_unavailable(self, stats):
        error = OperationalError("SELECT", {}, Exception("database is locked"))
        with patch.object(
            stats.booking_repository, "count_bookings_by_status", side_effect=error
        ) as counted, patch("classbook.database.time.sleep"):
            with pytest.raises(StoreUnavailableException):
                stats.get_booking_statistics()

        assert counted.call_count == 3
