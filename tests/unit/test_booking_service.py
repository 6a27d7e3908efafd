"""
Unit tests for BookingService.

Covers:
- Slot availability against stored bookings
- Confirmation with price and status
- Double-booking rejection
- Status updates and cancellation
- Per-user listing order
"""

from datetime import date
from unittest.mock import Mock

import pytest

from courtbook.domain.booking import Booking, BookingStatus
from courtbook.services.booking_service import BookingService
from courtbook.services.booking_store import InMemoryBookingStore
from courtbook.services.errors import BookingValidationError

MONDAY = date(2025, 10, 20)
TUESDAY = date(2025, 10, 21)
THURSDAY = date(2025, 10, 23)


def make_booking(**overrides):
    data = {
        "user_id": "uid-1",
        "facility_name": "Badminton Court 1",
        "date": MONDAY,
        "time_slot": "10:00 - 11:00",
        "contact_name": "Aisyah",
        "contact_student_id": "BCS2209123",
    }
    data.update(overrides)
    return Booking(**data)


@pytest.fixture
def service():
    return BookingService(InMemoryBookingStore())


class TestConfirmBooking:
    def test_confirm_sets_price_and_status(self, service):
        # Arrange
        booking = make_booking()

        # Act
        result = service.process_and_confirm_booking(booking)

        # Assert
        assert result is booking
        assert result.status == BookingStatus.CONFIRMED
        assert result.total_cost == "RM 22.50"
        assert len(service.store) == 1

    def test_short_student_id_pays_full_price(self, service):
        result = service.process_and_confirm_booking(make_booking(contact_student_id="1234"))

        assert result.total_cost == "RM 25.00"

    def test_second_booking_for_same_slot_rejected(self, service):
        first = service.process_and_confirm_booking(make_booking())
        second = service.process_and_confirm_booking(make_booking(user_id="uid-2"))

        assert first is not None
        assert second is None
        assert len(service.store) == 1

    def test_different_slot_date_or_facility_accepted(self, service):
        service.process_and_confirm_booking(make_booking())

        assert service.process_and_confirm_booking(make_booking(time_slot="11:00 - 12:00"))
        assert service.process_and_confirm_booking(make_booking(date=THURSDAY))
        assert service.process_and_confirm_booking(make_booking(facility_name="Badminton Court 2"))
        assert len(service.store) == 4

    def test_string_date_is_normalized(self, service):
        booking = make_booking(date="2025-10-20")

        service.process_and_confirm_booking(booking)

        assert booking.date == MONDAY

    @pytest.mark.parametrize("missing", ["user_id", "facility_name", "time_slot"])
    def test_missing_required_field(self, service, missing):
        with pytest.raises(BookingValidationError, match=missing):
            service.process_and_confirm_booking(make_booking(**{missing: ""}))

    def test_missing_date(self, service):
        with pytest.raises(BookingValidationError, match="date"):
            service.process_and_confirm_booking(make_booking(date=None))

    def test_store_failure_propagates(self):
        store = Mock()
        store.find_bookings.return_value = []
        store.add.side_effect = RuntimeError("store down")
        service = BookingService(store)

        with pytest.raises(RuntimeError):
            service.process_and_confirm_booking(make_booking())


class TestAvailability:
    def test_all_slots_free_without_bookings(self, service):
        slots, message = service.get_available_time_slots("Badminton Court 1", MONDAY)

        assert message == ""
        assert len(slots) == 14
        assert all(s.is_available for s in slots)

    def test_booked_slot_marked_unavailable(self, service):
        service.process_and_confirm_booking(make_booking())

        slots, _ = service.get_available_time_slots("Badminton Court 1", MONDAY)

        taken = [s.slot_name for s in slots if not s.is_available]
        assert taken == ["10:00 - 11:00"]

    def test_booking_on_other_court_does_not_block(self, service):
        service.process_and_confirm_booking(make_booking(facility_name="Badminton Court 2"))

        assert service.is_slot_available("Badminton Court 1", "10:00 - 11:00", MONDAY)

    def test_closed_day_returns_message(self, service):
        slots, message = service.get_available_time_slots("Badminton Court 1", TUESDAY)

        assert slots == []
        assert "Monday, Thursday and Friday" in message

    def test_category_used_when_name_has_none(self, service):
        slots, message = service.get_available_time_slots("Hall A", TUESDAY, category="Badminton")

        assert slots == []
        assert message

    @pytest.mark.parametrize("requested", ["badminton", "Tennis", "Basketball", None])
    def test_name_category_wins_over_request(self, service, requested):
        assert BookingService.resolve_category("Badminton Court 1", requested) == "Badminton"

        slots, message = service.get_available_time_slots("Badminton Court 1", TUESDAY, category=requested)

        assert slots == []
        assert message

    def test_requested_category_matched_case_insensitively(self):
        assert BookingService.resolve_category("Hall A", "ping-pong") == "Ping-Pong"

    def test_unknown_requested_category_ignored(self):
        assert BookingService.resolve_category("Hall A", "Tennis") is None

    def test_unknown_facility_open_on_any_day(self, service):
        slots, _ = service.get_available_time_slots("Squash Court 1", TUESDAY)

        assert len(slots) == 14

    def test_string_date_accepted(self, service):
        service.process_and_confirm_booking(make_booking())

        assert not service.is_slot_available("Badminton Court 1", "10:00 - 11:00", "2025-10-20")


class TestStatusUpdates:
    def test_cancel_frees_slot(self, service):
        booking = service.process_and_confirm_booking(make_booking())

        assert service.cancel_booking(booking.id) is True

        assert booking.status == BookingStatus.CANCELLED
        assert service.is_slot_available("Badminton Court 1", "10:00 - 11:00", MONDAY)
        assert service.process_and_confirm_booking(make_booking(user_id="uid-2")) is not None

    def test_update_with_booking_object(self, service):
        booking = service.process_and_confirm_booking(make_booking())

        assert service.update_booking_status(booking, BookingStatus.PENDING)
        assert booking.status == BookingStatus.PENDING

    def test_update_unknown_booking(self, service):
        assert service.update_booking_status("NOPE0000", BookingStatus.CANCELLED) is False

    def test_get_booking(self, service):
        booking = service.process_and_confirm_booking(make_booking())

        assert service.get_booking(booking.id) is booking
        assert service.get_booking("NOPE0000") is None

    def test_invalid_status_rejected(self, service):
        with pytest.raises(BookingValidationError):
            service.update_booking_status("NOPE0000", "Archived")


class TestUserBookings:
    def test_only_own_bookings_sorted_by_date(self, service):
        later = service.process_and_confirm_booking(make_booking(date=THURSDAY))
        earlier = service.process_and_confirm_booking(make_booking())
        service.process_and_confirm_booking(make_booking(user_id="uid-2", time_slot="12:00 - 13:00"))

        result = service.get_user_bookings("uid-1")

        assert [b.id for b in result] == [earlier.id, later.id]

    def test_no_bookings(self, service):
        assert service.get_user_bookings("uid-9") == []
