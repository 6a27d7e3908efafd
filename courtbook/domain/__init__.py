"""Domain models - core business entities."""

from .booking import Booking, BookingStatus
from .facility import Facility, SportCategory
from .session import AuthSession
from .time_slot import TimeSlot
from .user import User

__all__ = [
    "Booking",
    "BookingStatus",
    "Facility",
    "SportCategory",
    "AuthSession",
    "TimeSlot",
    "User",
]
