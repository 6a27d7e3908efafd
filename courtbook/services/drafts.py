"""Draft bookings built from a slot selection, before confirmation."""

from datetime import date
from typing import List, Optional

from courtbook.domain.booking import Booking, BookingStatus
from courtbook.domain.facility import Facility
from courtbook.domain.time_slot import TimeSlot
from courtbook.domain.user import User
from courtbook.services.errors import BookingValidationError


def select_slot(slots: List[TimeSlot], slot_name: str) -> Optional[TimeSlot]:
    """
    Single selection: select the named slot and clear every other one.

    Taken or unknown slots are ignored and the current selection is kept.
    """
    target = next((s for s in slots if s.slot_name == slot_name), None)
    if target is None or not target.is_available:
        return None

    for slot in slots:
        slot.is_selected = False
    target.is_selected = True
    return target


def build_draft(
    user: Optional[User],
    facility: Facility,
    on_date: date,
    slots: List[TimeSlot],
) -> Booking:
    """
    Draft booking for the selected slot.

    Raises:
        BookingValidationError: If nobody is signed in or no slot is selected
    """
    selected = next((s for s in slots if s.is_selected), None)
    if selected is None:
        raise BookingValidationError("Please select an available time slot.")
    if user is None or not user.id:
        raise BookingValidationError("Please sign in to make a booking.")

    return Booking(
        user_id=user.id,
        facility_name=facility.name,
        facility_image=facility.image_url,
        location=facility.location,
        date=on_date,
        time_slot=selected.slot_name,
        status=BookingStatus.DRAFT,
        contact_name=user.name,
        contact_student_id=user.student_id,
    )
