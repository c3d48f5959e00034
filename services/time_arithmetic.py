"""Minute-of-day conversions and the half-open interval overlap predicate."""

import re
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from models.entities import MINUTES_PER_DAY
from models.errors import InvalidTimeFormat

_HHMM = re.compile(r"([01]?[0-9]|2[0-3]):([0-5][0-9])")

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def to_minutes(hhmm: str) -> int:
    """
    Convert a 24-hour "HH:MM" string to minutes since midnight.

    A one-digit hour ("9:05") is accepted; to_hhmm always answers the
    zero-padded form, so the string round trip holds for "HH:MM" input only.

    Raises:
        InvalidTimeFormat: if the value is not a valid HH:MM string
    """
    if not isinstance(hhmm, str):
        raise InvalidTimeFormat(hhmm)
    match = _HHMM.fullmatch(hhmm)
    if not match:
        raise InvalidTimeFormat(hhmm)
    return int(match.group(1)) * 60 + int(match.group(2))


def to_hhmm(total: int) -> str:
    """Convert minutes to "HH:MM", wrapping past midnight."""
    wrapped = total % MINUTES_PER_DAY
    return f"{wrapped // 60:02d}:{wrapped % 60:02d}"


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap: intervals touching at an endpoint do not overlap."""
    return a_start < b_end and b_start < a_end


def end_minute(start: int, duration_minutes: int) -> int:
    """End minute of an appointment; may exceed 1440 when it runs past midnight."""
    return start + duration_minutes


def day_of_week(value: date) -> int:
    """Day of week with Sunday = 0."""
    return (value.weekday() + 1) % 7


def day_name(dow: int) -> str:
    return DAY_NAMES[dow % 7]


def local_now(now: Optional[datetime] = None, timezone: str = "UTC") -> datetime:
    """
    Resolve "now" as a naive datetime in the booking timezone.

    Commitments and candidates carry naive local dates and times, so every
    comparison against "now" happens in that same frame. Naive inputs are
    taken as already local; aware inputs are converted.
    """
    tz = pytz.timezone(timezone)
    if now is None:
        now = datetime.now(pytz.UTC)
    if now.tzinfo is None:
        return now
    return now.astimezone(tz).replace(tzinfo=None)


def combine(on: date, minute: int) -> datetime:
    """Naive datetime for a minute of day on a date; minutes past 1440 roll into the next day."""
    return datetime.combine(on, time.min) + timedelta(minutes=minute)
