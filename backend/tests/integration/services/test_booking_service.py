"""Integration tests for BookingService admission, lifecycle and updates."""

from datetime import time, timedelta

import pytest

from classbook.core.exceptions import (
    CapacityExceededException,
    DuplicateBookingException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from classbook.models import Booking, BookingStatus, Member
from classbook.schemas.booking import BookingCreate, BookingFilters, BookingUpdate
from classbook.services.booking_service import BookingService
from tests.conftest import TODAY, TOMORROW


@pytest.fixture
def service(db, clock, test_settings) -> BookingService:
    return BookingService(db, clock=clock, settings=test_settings)


@pytest.fixture
def class_id(make_class) -> str:
    return make_class(max_capacity=3)


def _request(class_id, email="sam@example.com", name="Sam Member", **overrides) -> BookingCreate:
    data = {
        "class_id": class_id,
        "member_name": name,
        "member_email": email,
        "participation_date": TOMORROW,
    }
    data.update(overrides)
    return BookingCreate(**data)


class TestCreateBooking:
    def test_creates_pending_booking_and_member(self, service, db, class_id):
        booking = service.create_booking(_request(class_id, notes="Front row please"))

        assert booking.status == BookingStatus.PENDING.value
        assert booking.class_id == class_id
        assert booking.notes == "Front row please"
        assert db.query(Member).count() == 1

    def test_reuses_existing_member(self, service, class_id, make_member):
        member_id = make_member(email="sam@example.com")
        assert service.create_booking(_request(class_id)).member_id == member_id

    def test_duplicate_live_booking_rejected(self, service, db, class_id):
        service.create_booking(_request(class_id))

        with pytest.raises(DuplicateBookingException):
            service.create_booking(_request(class_id))
        assert db.query(Booking).count() == 1

    def test_rebooking_after_cancellation_allowed(self, service, db, class_id):
        first = service.create_booking(_request(class_id))
        service.cancel_booking(first.id)

        second = service.create_booking(_request(class_id))

        assert second.id != first.id
        assert db.query(Booking).count() == 2

    def test_capacity_ceiling(self, service, class_id):
        for n in range(3):
            service.create_booking(_request(class_id, email=f"m{n}@example.com"))

        with pytest.raises(CapacityExceededException) as exc_info:
            service.create_booking(_request(class_id, email="late@example.com"))
        assert exc_info.value.details["max_capacity"] == 3

    def test_cancelled_booking_frees_its_seat(self, service, class_id):
        bookings = [
            service.create_booking(_request(class_id, email=f"m{n}@example.com")) for n in range(3)
        ]
        service.cancel_booking(bookings[0].id)

        assert service.create_booking(_request(class_id, email="late@example.com")).status == "pending"

    def test_no_show_frees_its_seat(self, service, class_id):
        bookings = [
            service.create_booking(_request(class_id, email=f"m{n}@example.com")) for n in range(3)
        ]
        service.confirm_booking(bookings[0].id)
        service.mark_no_show(bookings[0].id)

        assert service.create_booking(_request(class_id, email="late@example.com"))

    def test_participation_date_must_match_class(self, service, class_id):
        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(_request(class_id, participation_date=TODAY))
        assert exc_info.value.code == "BOOKING_DATE_OUT_OF_RANGE"

    def test_participation_date_in_past(self, service, class_id):
        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(_request(class_id, participation_date=TODAY - timedelta(days=1)))
        assert exc_info.value.code == "BOOKING_PAST_DATE"

    def test_class_not_active(self, service, make_class):
        cancelled_class = make_class(status="cancelled", name="Closed Class")
        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(_request(cancelled_class))
        assert exc_info.value.code == "CLASS_NOT_ACTIVE"

    def test_unknown_class(self, service):
        with pytest.raises(NotFoundException):
            service.create_booking(_request("missing"))

    def test_invalid_member_email_writes_nothing(self, service, db, class_id):
        with pytest.raises(ValidationException):
            service.create_booking(_request(class_id, email="nope"))
        assert db.query(Member).count() == 0
        assert db.query(Booking).count() == 0


class TestLifecycle:
    @pytest.fixture
    def booking_id(self, service, class_id) -> str:
        return service.create_booking(_request(class_id)).id

    def test_confirm_then_attend(self, service, booking_id):
        confirmed = service.confirm_booking(booking_id)
        assert confirmed.status == "confirmed"
        assert confirmed.confirmed_at is not None

        attended = service.mark_attended(booking_id)
        assert attended.status == "attended"
        assert attended.attended_at is not None

    def test_attend_pending_confirms_first(self, service, booking_id):
        attended = service.mark_attended(booking_id)
        assert attended.status == "attended"
        assert attended.confirmed_at is not None

    def test_cancel_records_who_and_why(self, service, booking_id):
        cancelled = service.cancel_booking(booking_id, reason="Sick", cancelled_by="member")
        assert cancelled.status == "cancelled"
        assert cancelled.cancelled_by == "member"
        assert cancelled.cancellation_reason == "Sick"
        assert cancelled.cancelled_at is not None

    def test_cancel_defaults_to_system(self, service, booking_id):
        assert service.cancel_booking(booking_id).cancelled_by == "system"

    def test_attend_cancelled_booking_rejected(self, service, db, booking_id):
        service.cancel_booking(booking_id)

        with pytest.raises(InvalidTransitionException):
            service.mark_attended(booking_id)

        db.expire_all()
        assert db.get(Booking, booking_id).status == "cancelled"

    @pytest.mark.parametrize(
        "path,final_op",
        [
            (["confirm", "attend"], "cancel"),
            (["confirm", "no_show"], "attend"),
            (["cancel"], "confirm"),
            ([], "no_show"),
        ],
    )
    def test_illegal_transitions(self, service, booking_id, path, final_op):
        ops = {
            "confirm": service.confirm_booking,
            "attend": service.mark_attended,
            "cancel": service.cancel_booking,
            "no_show": service.mark_no_show,
        }
        for op in path:
            ops[op](booking_id)

        with pytest.raises(InvalidTransitionException) as exc_info:
            ops[final_op](booking_id)
        assert exc_info.value.code == "BOOKING_INVALID_TRANSITION"

    def test_delete_pending_booking(self, service, db, booking_id):
        service.delete_booking(booking_id)
        assert db.get(Booking, booking_id) is None

    def test_delete_attended_booking_refused(self, service, booking_id):
        service.mark_attended(booking_id)
        with pytest.raises(ValidationException) as exc_info:
            service.delete_booking(booking_id)
        assert exc_info.value.code == "BOOKING_ATTENDED_DELETE"

    def test_missing_booking(self, service):
        with pytest.raises(NotFoundException):
            service.confirm_booking("missing")


class TestUpdateBooking:
    @pytest.fixture
    def booking(self, service, class_id):
        return service.create_booking(_request(class_id, member_phone="+14155550100"))

    def test_notes_and_status(self, service, booking):
        updated = service.update_booking(
            booking.id, BookingUpdate(notes="Bringing a mat", status=BookingStatus.CONFIRMED)
        )
        assert updated.notes == "Bringing a mat"
        assert updated.status == "confirmed"

    def test_cancel_with_reason(self, service, booking):
        updated = service.update_booking(
            booking.id, BookingUpdate(status=BookingStatus.CANCELLED, cancellation_reason="Travel")
        )
        assert updated.status == "cancelled"
        assert updated.cancellation_reason == "Travel"

    def test_reason_without_cancel_rejected(self, service, booking):
        with pytest.raises(ValidationException) as exc_info:
            service.update_booking(booking.id, BookingUpdate(cancellation_reason="Travel"))
        assert exc_info.value.code == "BOOKING_INVALID_CANCELLATION_REASON"

    def test_illegal_status_change_rejected(self, service, booking):
        with pytest.raises(InvalidTransitionException):
            service.update_booking(booking.id, BookingUpdate(status=BookingStatus.ATTENDED))

    def test_repeating_terminal_status_rejected(self, service, db, booking):
        service.cancel_booking(booking.id, reason="Sick")

        with pytest.raises(InvalidTransitionException) as exc_info:
            service.update_booking(booking.id, BookingUpdate(status=BookingStatus.CANCELLED))

        assert exc_info.value.details == {
            "current_status": "cancelled",
            "requested_status": "cancelled",
        }
        db.expire_all()
        assert db.get(Booking, booking.id).cancellation_reason == "Sick"

    def test_repeating_current_status_rejected(self, service, booking):
        service.confirm_booking(booking.id)

        with pytest.raises(InvalidTransitionException):
            service.update_booking(booking.id, BookingUpdate(status=BookingStatus.CONFIRMED))

    def test_past_participation_date_rejected(self, service, db, booking):
        with pytest.raises(ValidationException) as exc_info:
            service.update_booking(
                booking.id,
                BookingUpdate(participation_date=TODAY - timedelta(days=1), notes="Earlier please"),
            )

        assert exc_info.value.code == "BOOKING_PAST_DATE"
        db.expire_all()
        stored = db.get(Booking, booking.id)
        assert (stored.participation_date, stored.notes) == (TOMORROW, None)

    def test_participation_date_must_stay_on_class_date(self, service, db, booking):
        with pytest.raises(ValidationException) as exc_info:
            service.update_booking(
                booking.id,
                BookingUpdate(participation_date=TOMORROW + timedelta(days=1), notes="Later please"),
            )

        assert exc_info.value.code == "BOOKING_DATE_OUT_OF_RANGE"
        db.expire_all()
        stored = db.get(Booking, booking.id)
        assert (stored.participation_date, stored.notes) == (TOMORROW, None)

    def test_same_email_updates_contact(self, service, db, booking):
        service.update_booking(
            booking.id, BookingUpdate(member_name="Samantha", member_phone="+14155550199")
        )

        member = db.get(Member, booking.member_id)
        assert (member.name, member.phone) == ("Samantha", "+14155550199")

    def test_new_email_moves_booking_to_other_member(self, service, db, booking):
        original_member = booking.member_id

        updated = service.update_booking(
            booking.id, BookingUpdate(member_email="alex@example.com", member_name="Alex")
        )

        assert updated.member_id != original_member
        assert db.query(Member).count() == 2
        assert db.get(Member, updated.member_id).email == "alex@example.com"

    def test_new_email_with_live_booking_is_duplicate(self, service, class_id, booking):
        service.create_booking(_request(class_id, email="alex@example.com", name="Alex"))

        with pytest.raises(DuplicateBookingException):
            service.update_booking(booking.id, BookingUpdate(member_email="alex@example.com"))


class TestBookingQueries:
    def test_get_booking_includes_member(self, service, class_id):
        created = service.create_booking(_request(class_id))

        booking = service.get_booking(created.id)

        assert booking.member.email == "sam@example.com"

    def test_list_filters(self, service, class_id, make_class):
        other_class = make_class(name="Evening Spin", start=time(18, 0), end=time(19, 0))
        first = service.create_booking(_request(class_id, email="a@example.com", name="Alice"))
        service.create_booking(_request(class_id, email="b@example.com", name="Bob"))
        service.create_booking(_request(other_class, email="a@example.com", name="Alice"))
        service.cancel_booking(first.id)

        assert len(service.list_bookings(BookingFilters(class_id=class_id))) == 2
        assert len(service.list_bookings(BookingFilters(member_name="ali"))) == 2
        cancelled = service.list_bookings(BookingFilters(status=BookingStatus.CANCELLED))
        assert [b.id for b in cancelled] == [first.id]
