"""Booking services - schedule, pricing, confirmation, catalog and history."""

from .booking_service import BookingService
from .booking_store import InMemoryBookingStore
from .catalog import FacilityCatalog
from .errors import BookingError, BookingValidationError, InvalidBookingDateError
from .history import HistoryService
from .rules import FacilityRules

__all__ = [
    "BookingService",
    "InMemoryBookingStore",
    "FacilityCatalog",
    "BookingError",
    "BookingValidationError",
    "InvalidBookingDateError",
    "HistoryService",
    "FacilityRules",
]
