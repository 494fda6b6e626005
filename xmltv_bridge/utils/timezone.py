"""
Date and Time utilities

Parses listing time ranges into timezone-aware instants and renders
instants in the XMLTV timestamp format.
"""
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo
import logging
import re

logger = logging.getLogger(__name__)

XMLTV_DATE_FORMAT = "%Y%m%d%H%M%S %z"

_TWELVE_HOUR = re.compile(r"(\d{1,2}):?(\d{2})?\s*([AP])\.?M\.?", re.IGNORECASE)
_TWENTY_FOUR_HOUR = re.compile(r"(\d{1,2})(?::?(\d{2}))?")
_RANGE = re.compile(r"(.+?)\s*[-–—]\s*(.+)")


def to_xmltv_date(value: datetime, tz_name: str) -> str:
    """
    Render an instant as 'YYYYMMDDHHMMSS +HHMM' in the given zone

    Args:
        value: Timezone-aware datetime (naive values are treated as being in tz_name)
        tz_name: IANA timezone used for the output

    Returns:
        XMLTV timestamp string
    """
    zone = ZoneInfo(tz_name)
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone)
    return value.astimezone(zone).strftime(XMLTV_DATE_FORMAT)


def parse_time_of_day(text: str, base: datetime) -> datetime | None:
    """
    Parse '9:30 PM', '9pm' or '21:30' onto the date of base

    Args:
        text: Time-of-day token
        base: Datetime supplying the date and timezone

    Returns:
        Datetime on base's date, or None if text is not a valid time
    """
    match = _TWELVE_HOUR.search(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if hour > 12 or minute > 59:
            return None
        meridiem = match.group(3).upper()
        if meridiem == "P" and hour < 12:
            hour += 12
        if meridiem == "A" and hour == 12:
            hour = 0
        return base.replace(hour=hour, minute=minute, second=0, microsecond=0)

    match = _TWENTY_FOUR_HOUR.search(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if hour > 23 or minute > 59:
            return None
        return base.replace(hour=hour, minute=minute, second=0, microsecond=0)

    return None


def parse_time_range(text: str, now: datetime) -> tuple[datetime, datetime] | None:
    """
    Parse a listing range like '11:30 PM - 12:30 AM'

    Both ends are anchored to now's date; a stop earlier than the start is
    moved to the next day so ranges crossing midnight stay ordered.

    Args:
        text: Raw time-range text from the listing
        now: Timezone-aware anchor datetime

    Returns:
        (start, stop) with stop strictly after start, or None if unparseable
    """
    match = _RANGE.match(text.strip()) if text else None
    if not match:
        return None

    start = parse_time_of_day(match.group(1), now)
    stop = parse_time_of_day(match.group(2), now)
    if start is None or stop is None:
        return None

    if stop < start:
        stop += timedelta(days=1)
    if stop == start:
        logger.debug("Dropping zero-length time range: %s", text)
        return None

    return start, stop
