"""
Process-local booking store.

Holds bookings in a plain list for the lifetime of the process. It exposes
the same methods as the DynamoDB BookingRepository so BookingService can use
either. Nothing guards the list; two processes each see only their own.
"""

from typing import List, Optional

from courtbook.domain.booking import Booking, parse_date


class InMemoryBookingStore:
    """List-backed booking store."""

    def __init__(self, bookings: Optional[List[Booking]] = None):
        self._bookings: List[Booking] = list(bookings or [])

    def __len__(self) -> int:
        return len(self._bookings)

    def add(self, booking: Booking) -> Booking:
        self._bookings.append(booking)
        return booking

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return next((b for b in self._bookings if b.id == booking_id), None)

    def find_bookings(self, facility_name: str, on_date) -> List[Booking]:
        """All bookings (any status) for a facility on a date."""
        day = parse_date(on_date)
        return [b for b in self._bookings if b.facility_name == facility_name and b.date == day]

    def list_user_bookings(self, user_id: str) -> List[Booking]:
        """A user's bookings ordered by date; equal dates keep insertion order."""
        mine = [b for b in self._bookings if b.user_id == user_id]
        return sorted(mine, key=lambda b: b.date.isoformat() if b.date else "")

    def update_status(self, booking_id: str, status: str) -> bool:
        existing = self.get_booking(booking_id)
        if existing is None:
            return False
        existing.status = status
        return True
