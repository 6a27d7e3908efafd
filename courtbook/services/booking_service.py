"""
Booking service: availability, pricing and confirmation.

The double-booking check is a linear scan of whatever the store returns at
call time. There is no transactional isolation, so two processes can both
pass the check for the same slot.
"""

from datetime import date
from typing import List, Optional, Tuple, Union

from courtbook.domain.booking import Booking, BookingStatus, parse_date
from courtbook.domain.facility import canonical_category, category_for_name
from courtbook.domain.time_slot import TimeSlot
from courtbook.services.booking_store import InMemoryBookingStore
from courtbook.services.errors import BookingValidationError
from courtbook.services.pricing import calculate_final_cost
from courtbook.services.rules import FacilityRules
from courtbook.services.schedule import generate_time_slots
from courtbook.utils.logger import get_logger, log_operation

logger = get_logger(__name__)


class BookingService:
    """
    Booking operations over a booking store.

    Args:
        store: Object with add / get_booking / find_bookings /
            list_user_bookings / update_status (default: a new
            InMemoryBookingStore)
        rules: Facility rule table (default: built-in rules)
    """

    def __init__(self, store=None, rules: Optional[FacilityRules] = None):
        self.store = store if store is not None else InMemoryBookingStore()
        self.rules = rules or FacilityRules()

    def calculate_final_cost(self, facility_id: str, time_slot: str, student_id: Optional[str]) -> str:
        """Formatted price for a facility slot, e.g. "RM 22.50"."""
        return calculate_final_cost(facility_id, time_slot, student_id, self.rules)

    @staticmethod
    def resolve_category(facility_id: str, requested: Optional[str] = None) -> Optional[str]:
        """
        Category whose opening days apply to a facility.

        The facility name decides when it names a sport. Otherwise a
        requested category is used only if it is a known one (any case).
        """
        derived = category_for_name(facility_id)
        if derived is not None:
            if requested and canonical_category(requested) != derived:
                logger.warning(
                    "Ignoring category that does not match facility",
                    operation="get_time_slots",
                    context={"facility": facility_id, "requested": requested, "category": derived},
                )
            return derived
        return canonical_category(requested)

    def get_available_time_slots(
        self,
        facility_id: str,
        on_date: Union[date, str],
        category: Optional[str] = None,
    ) -> Tuple[List[TimeSlot], str]:
        """
        Slots for a facility on a date, each marked available or taken.

        Args:
            facility_id: Facility name
            on_date: Calendar date
            category: Stored sport category for facilities whose name does
                not identify one; a category resolved from the name wins

        Returns:
            (slots, message); on a closed day slots is empty and message
            explains when the category is open
        """
        day = parse_date(on_date)
        category = self.resolve_category(facility_id, category)
        slots, message = generate_time_slots(category, day, self.rules)
        if not slots:
            logger.info(
                "Facility closed on requested day",
                operation="get_time_slots",
                context={"facility": facility_id, "date": day.isoformat(), "category": category},
            )
            return slots, message

        taken = {
            b.time_slot for b in self.store.find_bookings(facility_id, day) if b.is_active()
        }
        for slot in slots:
            slot.is_available = slot.slot_name not in taken

        logger.debug(
            "Generated time slots",
            operation="get_time_slots",
            context={"facility": facility_id, "date": day.isoformat(), "taken": len(taken)},
        )
        return slots, message

    def is_slot_available(self, facility_id: str, time_slot: str, on_date: Union[date, str]) -> bool:
        """True unless an active booking holds the (facility, date, slot) triple."""
        return not any(
            b.occupies(facility_id, on_date, time_slot)
            for b in self.store.find_bookings(facility_id, on_date)
        )

    @log_operation("confirm_booking")
    def process_and_confirm_booking(self, booking: Booking) -> Optional[Booking]:
        """
        Confirm a booking if its slot is still free.

        Sets the price from the contact student ID, marks the booking
        Confirmed and stores it.

        Returns:
            The confirmed booking, or None when the slot is already taken

        Raises:
            BookingValidationError: If facility, date, slot or user is missing
        """
        booking.date = parse_date(booking.date)
        missing = [
            name
            for name in ("user_id", "facility_name", "date", "time_slot")
            if not getattr(booking, name)
        ]
        if missing:
            raise BookingValidationError(f"Booking is missing {', '.join(missing)}")

        context = {
            "booking_id": booking.id,
            "facility": booking.facility_name,
            "date": booking.date.isoformat(),
            "time_slot": booking.time_slot,
        }

        if not self.is_slot_available(booking.facility_name, booking.time_slot, booking.date):
            logger.warning("Booking rejected, slot already taken", operation="confirm_booking", context=context)
            return None

        booking.total_cost = self.calculate_final_cost(
            booking.facility_name, booking.time_slot, booking.contact_student_id
        )
        booking.status = BookingStatus.CONFIRMED
        self.store.add(booking)

        logger.info(
            "Booking confirmed",
            operation="confirm_booking",
            context={**context, "total_cost": booking.total_cost},
        )
        return booking

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self.store.get_booking(booking_id)

    def get_user_bookings(self, user_id: str) -> List[Booking]:
        """All bookings of a user ordered by date."""
        return self.store.list_user_bookings(user_id)

    def update_booking_status(self, booking: Union[Booking, str], new_status: str) -> bool:
        """
        Change the status of a stored booking.

        Args:
            booking: Booking or booking id
            new_status: One of BookingStatus.ALL

        Returns:
            True if the booking was found and updated, False otherwise
        """
        if new_status not in BookingStatus.ALL:
            raise BookingValidationError(f"Unknown booking status: {new_status}")

        booking_id = booking.id if isinstance(booking, Booking) else booking
        updated = self.store.update_status(booking_id, new_status)
        if updated and isinstance(booking, Booking):
            booking.status = new_status

        logger.info(
            "Booking status update" if updated else "Booking status update skipped, not found",
            operation="update_booking_status",
            context={"booking_id": booking_id, "status": new_status, "updated": updated},
        )
        return updated

    def cancel_booking(self, booking: Union[Booking, str]) -> bool:
        """Cancel a booking, freeing its slot."""
        return self.update_booking_status(booking, BookingStatus.CANCELLED)
