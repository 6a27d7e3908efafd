"""
Booking domain model.

Represents a reservation of a facility for one date and time slot.
Unknown document keys are carried in `extra_fields` so records written by
newer clients survive a round trip through older code.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Dict, Any, Optional, Union


class BookingStatus:
    """Status strings stored on booking documents."""

    DRAFT = "Draft"
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"

    ALL = (DRAFT, PENDING, CONFIRMED, CANCELLED)


CORE_FIELDS = {
    "id",
    "user_id",
    "facility_name",
    "facility_image",
    "location",
    "date",
    "time_slot",
    "status",
    "contact_name",
    "contact_student_id",
    "contact_phone",
    "total_cost",
}


def new_booking_id() -> str:
    """Short upper-case identifier, e.g. "3F9A1C07"."""
    return uuid.uuid4().hex[:8].upper()


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Normalize a stored or user-supplied date to a calendar date.

    Accepts ISO date strings, ISO datetime strings, date and datetime objects.
    The time part is always dropped.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if "T" in text or " " in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


@dataclass
class Booking:
    """
    Booking domain model.

    Attributes:
        id: Short booking identifier (8 upper-case hex characters)
        user_id: Identity provider uid of the booking owner
        facility_name: Facility display name, e.g. "Badminton Court 1"
        facility_image: Image reference copied from the facility
        location: Facility location copied from the facility
        date: Calendar date of the booking (no time part)
        time_slot: Slot label, e.g. "10:00 - 11:00"
        status: One of BookingStatus.ALL
        contact_name: Name entered on the confirmation form
        contact_student_id: Student ID entered on the confirmation form
        contact_phone: Phone number entered on the confirmation form
        total_cost: Formatted price, e.g. "RM 22.50"
    """

    user_id: str = ""
    facility_name: str = ""
    date: Optional[date] = None
    time_slot: str = ""
    status: str = BookingStatus.PENDING
    facility_image: str = ""
    location: str = ""
    contact_name: str = ""
    contact_student_id: str = ""
    contact_phone: str = ""
    total_cost: str = ""
    id: str = field(default_factory=new_booking_id)
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.date = parse_date(self.date)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        """
        Create Booking from a stored document.

        Missing core fields take their defaults; keys outside the core set
        are kept in extra_fields.

        Args:
            data: Dictionary with booking data

        Returns:
            Booking instance
        """
        core_data = {k: v for k, v in data.items() if k in CORE_FIELDS and v is not None}
        extra_data = {k: v for k, v in data.items() if k not in CORE_FIELDS}
        return cls(**core_data, extra_fields=extra_data)

    def to_dict(self, include_extra: bool = True) -> Dict[str, Any]:
        """
        Convert Booking to a document for storage.

        Args:
            include_extra: If True, flatten extra_fields into the output

        Returns:
            Dictionary representation with the date as "YYYY-MM-DD"
        """
        data = asdict(self)
        data["date"] = self.date.isoformat() if self.date else ""
        extra = data.pop("extra_fields", {})
        if include_extra:
            data.update(extra)
        return data

    def to_json(self) -> str:
        """Serialize for handing a draft from slot selection to confirmation."""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_json(cls, payload: str) -> "Booking":
        return cls.from_dict(json.loads(payload))

    def is_active(self) -> bool:
        """A booking holds its slot unless it was cancelled."""
        return self.status != BookingStatus.CANCELLED

    def occupies(self, facility_name: str, on_date: Union[str, date, datetime], time_slot: str) -> bool:
        """
        Check whether this booking holds the (facility, date, slot) triple.

        Cancelled bookings never occupy a slot.
        """
        return (
            self.is_active()
            and self.facility_name == facility_name
            and self.date == parse_date(on_date)
            and self.time_slot == time_slot
        )

    def get_field(self, field_name: str, default: Any = None) -> Any:
        """
        Get field value with support for dynamic fields.

        Args:
            field_name: Field name to retrieve
            default: Default value if field not found

        Returns:
            Field value or default
        """
        if field_name in CORE_FIELDS:
            return getattr(self, field_name)

        return self.extra_fields.get(field_name, default)

    def set_field(self, field_name: str, value: Any):
        """
        Set field value with support for dynamic fields.

        Args:
            field_name: Field name to set
            value: Value to set
        """
        if field_name == "date":
            self.date = parse_date(value)
        elif field_name in CORE_FIELDS:
            setattr(self, field_name, value)
        else:
            self.extra_fields[field_name] = value
