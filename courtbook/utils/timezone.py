"""
Timezone utilities for campus-local dates.

Opening-day rules and past-date checks use the campus calendar (UTC+8),
which differs from the server default when deployed in UTC.
"""

from datetime import date, datetime, timedelta, timezone

# Malaysia Time (UTC+8), no daylight saving
CAMPUS_TZ = timezone(timedelta(hours=8))


def now_local(aware: bool = False) -> datetime:
    """
    Return the current time on the campus clock.

    Args:
        aware: When True, returns a timezone-aware datetime. When False (default),
            returns a naive datetime stripped of tzinfo.

    Returns:
        datetime: Current campus time.
    """
    current = datetime.now(timezone.utc).astimezone(CAMPUS_TZ)
    return current if aware else current.replace(tzinfo=None)


def today_local() -> date:
    """Return today's date on the campus calendar."""
    return now_local().date()
