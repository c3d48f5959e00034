"""
Availability parsing.

Normalizes the three recurring-availability encodings into one canonical
AvailabilitySet (day of week -> ordered WeeklyIntervals):

- consumer slots: list of JSON strings (or mappings) {dayOfWeek, startTime, endTime}
- provider schedule: one row per day, either a legacy single interval or a
  list of explicit time slots, ignored when the day is not available
- service mask: same encoding as consumer slots; empty means unrestricted

Malformed entries are logged and skipped; a parse never aborts.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from models.entities import MINUTES_PER_DAY, AvailabilitySet, ProviderScheduleRow, WeeklyInterval
from models.errors import InvalidTimeFormat, MalformedAvailabilityEntry
from services.time_arithmetic import to_hhmm, to_minutes

logger = logging.getLogger(__name__)

RawSlot = Union[str, Mapping[str, Any]]
RawScheduleRow = Union[ProviderScheduleRow, Mapping[str, Any]]


def _get_field(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Get a value trying several field name variations."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _parse_day(value: Any) -> int:
    if isinstance(value, bool):
        raise MalformedAvailabilityEntry(f"invalid dayOfWeek: {value!r}")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or not 0 <= value <= 6:
        raise MalformedAvailabilityEntry(f"invalid dayOfWeek: {value!r}")
    return value


def _parse_bound(value: Any, is_end: bool = False) -> int:
    # "24:00" is only meaningful as the exclusive end of a day
    if is_end and value == "24:00":
        return MINUTES_PER_DAY
    try:
        return to_minutes(value)
    except InvalidTimeFormat as e:
        raise MalformedAvailabilityEntry(str(e)) from e


def _make_interval(day: int, start_value: Any, end_value: Any) -> WeeklyInterval:
    return WeeklyInterval(
        day_of_week=day,
        start=_parse_bound(start_value),
        end=_parse_bound(end_value, is_end=True),
    )


def _decode_slot(entry: RawSlot) -> Mapping[str, Any]:
    if isinstance(entry, str):
        try:
            decoded = json.loads(entry)
        except json.JSONDecodeError as e:
            raise MalformedAvailabilityEntry(f"slot is not valid JSON: {e}") from e
    else:
        decoded = entry
    if not isinstance(decoded, Mapping):
        raise MalformedAvailabilityEntry(f"slot must be an object, got {type(decoded).__name__}")
    return decoded


def _parse_slot(entry: RawSlot) -> WeeklyInterval:
    slot = _decode_slot(entry)
    day = _parse_day(_get_field(slot, "dayOfWeek", "day_of_week", "day"))
    return _make_interval(
        day,
        _get_field(slot, "startTime", "start_time", "start"),
        _get_field(slot, "endTime", "end_time", "end"),
    )


def _add(availability: AvailabilitySet, interval: WeeklyInterval) -> None:
    day_intervals = availability.setdefault(interval.day_of_week, [])
    day_intervals.append(interval)
    day_intervals.sort(key=lambda i: (i.start, i.end))


def _parse_slot_list(raw: Optional[Iterable[RawSlot]], source: str) -> AvailabilitySet:
    availability: AvailabilitySet = {}
    for entry in raw or []:
        try:
            _add(availability, _parse_slot(entry))
        except MalformedAvailabilityEntry as e:
            logger.warning("Dropping malformed %s slot %r: %s", source, entry, e)
    return availability


def parse_consumer_slots(raw: Optional[Iterable[RawSlot]]) -> AvailabilitySet:
    """
    Parse a consumer's stored availability slots.

    Args:
        raw: JSON strings or mappings with dayOfWeek (0 = Sunday), startTime, endTime

    Returns:
        AvailabilitySet; malformed entries are dropped with a warning
    """
    return _parse_slot_list(raw, "consumer")


def parse_service_mask(raw: Optional[Iterable[RawSlot]]) -> AvailabilitySet:
    """Parse a per-service availability mask. An empty result means no restriction."""
    return _parse_slot_list(raw, "service mask")


def _row_as_mapping(row: RawScheduleRow) -> Mapping[str, Any]:
    if isinstance(row, ProviderScheduleRow):
        return {
            "dayOfWeek": row.day_of_week,
            "isAvailable": row.is_available,
            "startTime": row.start_time,
            "endTime": row.end_time,
            "timeSlots": row.time_slots,
        }
    if isinstance(row, Mapping):
        return row
    raise MalformedAvailabilityEntry(f"schedule row must be an object, got {type(row).__name__}")


def parse_provider_schedule(rows: Optional[Iterable[RawScheduleRow]]) -> AvailabilitySet:
    """
    Parse a provider's weekly schedule rows.

    Each row is either a legacy single interval (startTime/endTime) or carries
    an explicit timeSlots list. Rows with isAvailable false contribute nothing.
    """
    availability: AvailabilitySet = {}
    for row in rows or []:
        try:
            data = _row_as_mapping(row)
            if not _get_field(data, "isAvailable", "is_available", default=False):
                continue
            day = _parse_day(_get_field(data, "dayOfWeek", "day_of_week", "day"))
        except MalformedAvailabilityEntry as e:
            logger.warning("Dropping malformed provider schedule row %r: %s", row, e)
            continue

        time_slots = _get_field(data, "timeSlots", "time_slots", default=[])
        if time_slots:
            for slot in time_slots:
                try:
                    slot_data = _decode_slot(slot)
                    _add(availability, _make_interval(
                        day,
                        _get_field(slot_data, "startTime", "start_time", "start"),
                        _get_field(slot_data, "endTime", "end_time", "end"),
                    ))
                except MalformedAvailabilityEntry as e:
                    logger.warning("Dropping malformed provider time slot %r on day %s: %s", slot, day, e)
            continue

        try:
            _add(availability, _make_interval(
                day,
                _get_field(data, "startTime", "start_time"),
                _get_field(data, "endTime", "end_time"),
            ))
        except MalformedAvailabilityEntry as e:
            logger.warning("Dropping malformed provider schedule row %r: %s", row, e)

    return availability


def summarize(availability: AvailabilitySet) -> dict[int, list[str]]:
    """Human-readable "HH:MM-HH:MM" strings per day, for prompts and logs."""
    return {
        day: [
            f"{to_hhmm(i.start)}-{'24:00' if i.end == MINUTES_PER_DAY else to_hhmm(i.end)}"
            for i in intervals
        ]
        for day, intervals in sorted(availability.items())
    }
