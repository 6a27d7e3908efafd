"""
Slot generation against the opening-day rule table.

A facility category is either open on a date, in which case every master
slot is offered, or closed, in which case no slot is offered and an advisory
message names the days it is open.
"""

from datetime import date, time
from typing import List, Optional, Tuple

from courtbook.domain.time_slot import TimeSlot, slot_label
from courtbook.services.errors import InvalidBookingDateError
from courtbook.services.rules import FacilityRules
from courtbook.utils.timezone import today_local


def master_time_slots(rules: Optional[FacilityRules] = None) -> List[TimeSlot]:
    """
    Hourly slots covering the daily opening hours.

    With the default rules: "08:00 - 09:00" through "21:00 - 22:00".
    """
    rules = rules or FacilityRules()
    slots = []
    for hour in range(rules.first_hour, rules.last_hour):
        start = time(hour, 0)
        end = time(hour + 1, 0) if hour + 1 < 24 else time(0, 0)
        slots.append(TimeSlot(slot_name=slot_label(start, end), start_time=start))
    return slots


def _join_days(days: List[str]) -> str:
    if len(days) == 1:
        return days[0]
    return f"{', '.join(days[:-1])} and {days[-1]}"


def closed_day_message(category: str, open_days: List[str]) -> str:
    """
    Advisory shown when a category cannot be booked on the chosen day.

    Example:
        >>> closed_day_message("Badminton", ["Monday", "Thursday", "Friday"])
        "Badminton facilities are open on Monday, Thursday and Friday only."
    """
    if not open_days:
        return f"{category} facilities are not open for booking."
    return f"{category} facilities are open on {_join_days(open_days)} only."


def generate_time_slots(
    category: Optional[str],
    on_date: date,
    rules: Optional[FacilityRules] = None,
) -> Tuple[List[TimeSlot], str]:
    """
    Slots bookable for a category on a date.

    Args:
        category: Sport category; None or unknown categories are open every day
        on_date: Calendar date
        rules: Rule table (default: built-in rules)

    Returns:
        (slots, message): all master slots and "" on an open day,
        [] and a non-empty advisory on a closed day
    """
    rules = rules or FacilityRules()
    if not rules.is_open(category, on_date):
        return [], closed_day_message(category, rules.open_days_for(category) or [])
    return master_time_slots(rules), ""


def validate_booking_date(on_date: date, today: Optional[date] = None) -> date:
    """
    Reject dates before today on the campus calendar.

    Returns:
        The date unchanged

    Raises:
        InvalidBookingDateError: If the date is in the past
    """
    today = today or today_local()
    if on_date < today:
        raise InvalidBookingDateError("Cannot select a past date.")
    return on_date
