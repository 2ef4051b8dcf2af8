"""Timezone detection and name resolution"""
import logging
from typing import Optional
from timezonefinder import TimezoneFinder

from challenge_bot.config import DEFAULT_TIMEZONE
from challenge_bot.utils.datetime_helpers import is_valid_timezone

logger = logging.getLogger(__name__)

# Common abbreviations and region words users type instead of IANA names
TIMEZONE_ALIASES = {
    'est': 'America/New_York', 'edt': 'America/New_York', 'et': 'America/New_York',
    'eastern': 'America/New_York',
    'cst': 'America/Chicago', 'cdt': 'America/Chicago', 'ct': 'America/Chicago',
    'central': 'America/Chicago',
    'mst': 'America/Denver', 'mdt': 'America/Denver', 'mt': 'America/Denver',
    'mountain': 'America/Denver', 'arizona': 'America/Phoenix',
    'pst': 'America/Los_Angeles', 'pdt': 'America/Los_Angeles', 'pt': 'America/Los_Angeles',
    'pacific': 'America/Los_Angeles',
    'akst': 'America/Anchorage', 'alaska': 'America/Anchorage',
    'hst': 'Pacific/Honolulu', 'hawaii': 'Pacific/Honolulu',
    'utc': 'UTC', 'gmt': 'UTC',
    'bst': 'Europe/London', 'london': 'Europe/London', 'uk': 'Europe/London',
    'cet': 'Europe/Paris', 'cest': 'Europe/Paris',
    'aest': 'Australia/Sydney', 'sydney': 'Australia/Sydney',
}


def get_timezone_from_coordinates(latitude: float, longitude: float) -> Optional[str]:
    """Get timezone from GPS coordinates (None if the point has no zone)"""
    tf = TimezoneFinder()
    timezone = tf.timezone_at(lat=latitude, lng=longitude)
    if timezone:
        logger.info(f"Detected timezone: {timezone}")
    else:
        logger.warning(f"No timezone found for ({latitude}, {longitude})")
    return timezone


def resolve_timezone(text: str) -> Optional[str]:
    """
    Turn user input into an IANA timezone name

    Accepts IANA names (any case), common abbreviations, region words and
    "default". Returns None when nothing matches.
    """
    cleaned = text.strip()
    lowered = cleaned.lower()
    if lowered == 'default':
        return DEFAULT_TIMEZONE
    if lowered in TIMEZONE_ALIASES:
        return TIMEZONE_ALIASES[lowered]
    if is_valid_timezone(cleaned):
        return cleaned
    # "america/new_york" -> "America/New_York"
    titled = "/".join(part.title() for part in cleaned.split("/"))
    if "/" in titled and is_valid_timezone(titled):
        return titled
    return None
