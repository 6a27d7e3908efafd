"""
Unit tests for timezone utility helpers.
"""

from datetime import timedelta

from courtbook.utils.timezone import CAMPUS_TZ, now_local, today_local


def test_now_local_returns_naive_by_default():
    """Default call should return naive datetime for date comparisons."""
    current = now_local()
    assert current.tzinfo is None


def test_now_local_returns_timezone_aware_when_requested():
    """When aware=True, the result retains the campus timezone info."""
    current = now_local(aware=True)
    assert current.tzinfo == CAMPUS_TZ
    assert current.utcoffset() == timedelta(hours=8)


def test_today_local_matches_campus_clock():
    assert today_local() in (now_local().date(), now_local(aware=True).date())
