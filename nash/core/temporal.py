"""
Temporal expression handling - "current time in <zone>" queries.
"""

import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, Optional
from zoneinfo import ZoneInfo, available_timezones

INVALID_TIMEZONE_MESSAGE = "Invalid timezone."

TIME_QUERY_RE = re.compile(r"current time in ([\w/\-\s]+)", re.IGNORECASE)


@lru_cache(maxsize=1)
def _zone_names() -> Dict[str, str]:
    """Map lower-cased IANA zone names to their canonical spelling."""
    return {name.lower(): name for name in available_timezones()}


def extract_time_query(text: str) -> Optional[str]:
    """Return the location phrase of a time query, or None if the text is not one."""
    if not text:
        return None
    match = TIME_QUERY_RE.search(text)
    if not match:
        return None
    return match.group(1)


def lookup_zone(location: str) -> Optional[str]:
    """Resolve a location phrase to a canonical zone name, case-insensitively."""
    candidate = re.sub(r"\s", "_", location.strip())
    if not candidate:
        return None
    return _zone_names().get(candidate.lower())


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_local_time(moment: datetime) -> str:
    """Format like 'October 17th 2026, 3:04:05 pm'."""
    hour = moment.hour % 12 or 12
    meridiem = "am" if moment.hour < 12 else "pm"
    return (
        f"{moment.strftime('%B')} {_ordinal(moment.day)} {moment.year}, "
        f"{hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"
    )


def render_time(location: str, now: datetime = None) -> str:
    """
    Render the current local time for a location phrase.

    An unknown zone yields INVALID_TIMEZONE_MESSAGE rather than an error.
    """
    zone_name = lookup_zone(location)
    if zone_name is None:
        return INVALID_TIMEZONE_MESSAGE

    now = now or datetime.now(timezone.utc)
    local = now.astimezone(ZoneInfo(zone_name))
    return f"The current time in {zone_name.replace('_', ' ')} is {format_local_time(local)}."
