"""Time slot shown on a facility's schedule for one date."""

from dataclasses import dataclass
from datetime import time
from typing import Dict, Any, Optional


def slot_label(start: time, end: time) -> str:
    """Format a slot label, e.g. "08:00 - 09:00"."""
    return f"{start.strftime('%H:%M')} - {end.strftime('%H:%M')}"


@dataclass
class TimeSlot:
    """
    Schedule slot.

    Regenerated on every facility/date query and never stored on its own;
    a Booking keeps only the slot label. is_selected is transient
    selection state.
    """

    slot_name: str
    start_time: Optional[time] = None
    is_available: bool = True
    is_selected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot_name": self.slot_name,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "is_available": self.is_available,
            "is_selected": self.is_selected,
        }
