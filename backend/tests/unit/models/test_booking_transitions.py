"""Booking lifecycle table and in-memory status helpers."""

import pytest

from classbook.models.booking import (
    BOOKING_TRANSITIONS,
    DEFAULT_CANCELLED_BY,
    Booking,
    BookingStatus,
    can_transition,
)

ALLOWED = {
    ("pending", "confirmed"),
    ("pending", "cancelled"),
    ("confirmed", "attended"),
    ("confirmed", "cancelled"),
    ("confirmed", "no_show"),
}


@pytest.mark.parametrize("current", [s.value for s in BookingStatus])
@pytest.mark.parametrize("target", [s.value for s in BookingStatus])
def test_transition_table(current, target):
    assert can_transition(current, target) == ((current, target) in ALLOWED)


def test_terminal_statuses_have_no_exits():
    for status in (BookingStatus.ATTENDED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
        assert BOOKING_TRANSITIONS[status] == frozenset()


def test_unknown_status_never_transitions():
    assert not can_transition("archived", "confirmed")


def test_new_booking_defaults_to_pending():
    assert Booking(class_id="c1", member_id="m1").status == "pending"


def test_cancel_stamps_fields():
    booking = Booking(class_id="c1", member_id="m1")
    booking.cancel(reason="Moved away")

    assert booking.status == "cancelled"
    assert booking.cancelled_by == DEFAULT_CANCELLED_BY
    assert booking.cancellation_reason == "Moved away"
    assert booking.cancelled_at is not None


def test_confirm_and_attend_stamp_times():
    booking = Booking(class_id="c1", member_id="m1")
    booking.confirm()
    booking.attend()

    assert booking.status == "attended"
    assert booking.confirmed_at is not None
    assert booking.attended_at is not None
