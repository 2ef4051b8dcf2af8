"""
Standardized Date/Time Handling Utilities

CRITICAL RULES:
- Always store datetimes as UTC (use now_utc())
- Day boundaries, alert times and rollover hours are judged in the user's
  local time (use local_now())
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, date, time
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from challenge_bot.config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(UTC)


def is_valid_timezone(tz_name: str) -> bool:
    """Check whether an IANA timezone name can be loaded"""
    if not tz_name or not isinstance(tz_name, str):
        return False
    try:
        ZoneInfo(tz_name)
        return True
    except (ZoneInfoNotFoundError, ValueError):
        return False


def get_zone(tz_name: Optional[str]) -> ZoneInfo:
    """
    Load a user's timezone, falling back to the default

    Args:
        tz_name: IANA timezone name (e.g., "America/New_York")

    Returns:
        ZoneInfo for the zone, or for DEFAULT_TIMEZONE if the name is invalid
    """
    if is_valid_timezone(tz_name):
        return ZoneInfo(tz_name)
    logger.warning(f"Invalid timezone '{tz_name}', using {DEFAULT_TIMEZONE}")
    return ZoneInfo(DEFAULT_TIMEZONE)


def local_now(tz_name: Optional[str], now: Optional[datetime] = None) -> datetime:
    """
    Current wall-clock time in the user's timezone

    Args:
        tz_name: User's IANA timezone
        now: Reference instant (aware); defaults to the real current time

    Returns:
        Aware datetime in the user's zone
    """
    reference = now or now_utc()
    if reference.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return reference.astimezone(get_zone(tz_name))


def local_today(tz_name: Optional[str], now: Optional[datetime] = None) -> date:
    """Today's calendar date in the user's timezone"""
    return local_now(tz_name, now).date()


def parse_hhmm(value: str) -> time:
    """
    Parse a zero-padded or bare "H:MM"/"HH:MM" string

    Raises:
        ValueError: If the string is not a valid time of day
    """
    hour_str, minute_str = value.strip().split(":")
    return time(hour=int(hour_str), minute=int(minute_str))


def minutes_after(local: datetime, hhmm: str) -> int:
    """
    Minutes elapsed on the local clock since the given HH:MM today

    Negative when HH:MM is still ahead.
    """
    target = parse_hhmm(hhmm)
    return (local.hour * 60 + local.minute) - (target.hour * 60 + target.minute)
