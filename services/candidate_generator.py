"""Deterministic candidate generation over common availability windows."""

import logging
from datetime import datetime, timedelta

from models.entities import Candidate, WeeklyInterval
from services.availability_intersector import ordered_windows
from services.time_arithmetic import day_name, day_of_week, end_minute, to_hhmm

logger = logging.getLogger(__name__)

MIN_TARGET_COUNT = 1
MAX_TARGET_COUNT = 12


def validate_target_count(target_count: int) -> int:
    """Appointments per month must be an integer between 1 and 12."""
    if isinstance(target_count, bool) or not isinstance(target_count, int):
        raise ValueError(f"target_count must be an integer, got {target_count!r}")
    if not MIN_TARGET_COUNT <= target_count <= MAX_TARGET_COUNT:
        raise ValueError(
            f"target_count must be between {MIN_TARGET_COUNT} and {MAX_TARGET_COUNT}, got {target_count}"
        )
    return target_count


class CandidateGenerator:
    """Spreads candidates across weeks and days of a fixed planning horizon."""

    def __init__(self, horizon_weeks: int = 4):
        """Initialize generator with the planning horizon in weeks."""
        if horizon_weeks < 1:
            raise ValueError("horizon_weeks must be at least 1")
        self.horizon_weeks = horizon_weeks

    def generate(
        self,
        windows: dict[int, list[WeeklyInterval]],
        target_count: int,
        service_duration: int,
        now: datetime
    ) -> list[Candidate]:
        """
        Generate up to target_count candidates.

        Args:
            windows: common windows per day of week
            target_count: desired appointments per month (1..12)
            service_duration: appointment length in minutes
            now: current naive local time

        Returns:
            Candidates in (week, day of week, start) order. Fewer than
            target_count are returned when the horizon holds fewer distinct
            (week, window) pairs; extras are never fabricated.

        Algorithm:
            For each week of the horizon, walk the windows in stable order and
            place one candidate at each window's start on that week's matching
            calendar date, until target_count is reached.
        """
        validate_target_count(target_count)
        today = now.date()
        today_dow = day_of_week(today)
        horizon_end = today + timedelta(weeks=self.horizon_weeks)
        flat_windows = ordered_windows(windows)

        candidates: list[Candidate] = []
        for week in range(self.horizon_weeks):
            for window in flat_windows:
                if len(candidates) >= target_count:
                    return candidates

                offset = week * 7 + (window.day_of_week - today_dow + 7) % 7
                target_date = today + timedelta(days=offset)
                if not today <= target_date <= horizon_end:
                    continue

                name = day_name(window.day_of_week)
                candidates.append(Candidate(
                    date=target_date,
                    start_time=to_hhmm(window.start),
                    end_time=to_hhmm(end_minute(window.start, service_duration)),
                    day_of_week=window.day_of_week,
                    duration_minutes=service_duration,
                    reasoning=f"Optimal time based on overlapping availability on {name}s",
                    confidence_label="Medium",
                    source_tag="generated",
                ))

        logger.debug("Generated %d of %d requested candidates", len(candidates), target_count)
        return candidates
