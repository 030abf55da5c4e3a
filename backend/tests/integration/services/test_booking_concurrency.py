"""
Concurrent admission tests.

Each worker uses its own session (and connection) against the same file
database, so the class row lock is what keeps the seat count honest.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import pytest

from classbook.core.exceptions import CapacityExceededException, DuplicateBookingException
from classbook.models import Booking
from classbook.schemas.booking import BookingCreate
from classbook.services.booking_service import BookingService
from tests.conftest import TOMORROW


def _book(session_factory, clock, class_id: str, email: str) -> Optional[str]:
    session = session_factory()
    try:
        booking = BookingService(session, clock=clock).create_booking(
            BookingCreate(
                class_id=class_id,
                member_name=email.split("@")[0],
                member_email=email,
                participation_date=TOMORROW,
            )
        )
        return booking.status
    except (CapacityExceededException, DuplicateBookingException) as exc:
        return exc.code
    finally:
        session.close()


def _live_bookings(session_factory, class_id: str) -> int:
    session = session_factory()
    try:
        return (
            session.query(Booking)
            .filter(Booking.class_id == class_id, Booking.status != "cancelled")
            .count()
        )
    finally:
        session.close()


@pytest.mark.parametrize("capacity,requests", [(1, 2), (5, 12)])
def test_capacity_never_exceeded(session_factory, clock, make_class, capacity, requests):
    class_id = make_class(max_capacity=capacity)

    with ThreadPoolExecutor(max_workers=requests) as pool:
        outcomes = list(
            pool.map(
                lambda n: _book(session_factory, clock, class_id, f"member{n}@example.com"),
                range(requests),
            )
        )

    assert outcomes.count("pending") == capacity
    assert outcomes.count("BOOKING_CLASS_FULL") == requests - capacity
    assert _live_bookings(session_factory, class_id) == capacity


def test_same_member_racing_gets_one_booking(session_factory, clock, make_class):
    class_id = make_class(max_capacity=10)

    with ThreadPoolExecutor(max_workers=6) as pool:
        outcomes = list(
            pool.map(lambda _: _book(session_factory, clock, class_id, "twin@example.com"), range(6))
        )

    assert outcomes.count("pending") == 1
    assert outcomes.count("BOOKING_DUPLICATE") == 5
    assert _live_bookings(session_factory, class_id) == 1
