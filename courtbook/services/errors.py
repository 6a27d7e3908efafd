"""Exceptions raised by the booking services."""


class BookingError(Exception):
    """Base exception for booking rule violations."""

    pass


class InvalidBookingDateError(BookingError):
    """Raised when a date in the past is requested."""

    pass


class BookingValidationError(BookingError):
    """Raised when a booking request is missing required information."""

    pass
