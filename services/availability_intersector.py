"""Per-day-of-week intersection of provider, service mask and consumer availability."""

import logging
from typing import Literal, Optional

from models.entities import AvailabilitySet, WeeklyInterval
from services.time_arithmetic import overlaps

logger = logging.getLogger(__name__)

MaskPolicy = Literal["first", "union"]


def _overlap_window(a: WeeklyInterval, b: WeeklyInterval) -> Optional[WeeklyInterval]:
    """Overlap of two intervals on the same day, or None if they do not overlap."""
    if not overlaps(a.start, a.end, b.start, b.end):
        return None
    return WeeklyInterval(
        day_of_week=a.day_of_week,
        start=max(a.start, b.start),
        end=min(a.end, b.end),
    )


def effective_provider_availability(
    provider_set: AvailabilitySet,
    service_mask: Optional[AvailabilitySet],
    policy: MaskPolicy = "first"
) -> AvailabilitySet:
    """
    Restrict provider availability to the service's slot mask.

    Args:
        provider_set: provider availability per day of week
        service_mask: per-service mask; empty or None means unrestricted
        policy: "first" keeps only the overlap with the first mask interval
            (in start order) that overlaps each provider interval; "union"
            keeps the overlap with every qualifying mask interval

    Returns:
        AvailabilitySet; a day with no overlapping mask interval is dropped
    """
    if policy not in ("first", "union"):
        raise ValueError(f"Unknown mask policy: {policy}")

    if not service_mask:
        return {day: list(intervals) for day, intervals in sorted(provider_set.items())}

    result: AvailabilitySet = {}
    for day, provider_intervals in sorted(provider_set.items()):
        mask_intervals = service_mask.get(day, [])
        windows: list[WeeklyInterval] = []

        for provider_interval in provider_intervals:
            for mask_interval in mask_intervals:
                window = _overlap_window(provider_interval, mask_interval)
                if window is None:
                    continue
                windows.append(window)
                if policy == "first":
                    break

        if windows:
            result[day] = sorted(windows, key=lambda w: (w.start, w.end))
        else:
            logger.debug("Day %s dropped: no service mask interval overlaps provider hours", day)

    return result


def common_windows(
    effective_provider: AvailabilitySet,
    consumer_set: AvailabilitySet
) -> dict[int, list[WeeklyInterval]]:
    """
    Find where the effective provider availability and the consumer agree.

    Days present on only one side are skipped. A day present on both sides
    with no overlapping interval maps to an empty list.
    """
    result: dict[int, list[WeeklyInterval]] = {}

    for day in sorted(set(effective_provider) & set(consumer_set)):
        windows = []
        for consumer_interval in consumer_set[day]:
            for provider_interval in effective_provider[day]:
                window = _overlap_window(consumer_interval, provider_interval)
                if window is not None:
                    windows.append(window)
        result[day] = sorted(windows, key=lambda w: (w.start, w.end))

    return result


def ordered_windows(windows: dict[int, list[WeeklyInterval]]) -> list[WeeklyInterval]:
    """Flatten common windows in stable order: day of week, then start."""
    flat = [w for intervals in windows.values() for w in intervals]
    return sorted(flat, key=lambda w: (w.day_of_week, w.start, w.end))
