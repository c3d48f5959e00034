from datetime import date, datetime

import pytest

from models.entities import WeeklyInterval
from services.candidate_generator import CandidateGenerator, validate_target_count

MONDAY_MORNING = WeeklyInterval(1, 600, 660)
WEDNESDAY_EVENING = WeeklyInterval(3, 1020, 1080)


@pytest.mark.parametrize("value", [0, 13, -1, True, 1.5, "4"])
def test_target_count_out_of_range(value):
    with pytest.raises(ValueError):
        validate_target_count(value)


def test_spreads_across_weeks_in_window_order(now):
    windows = {1: [MONDAY_MORNING], 3: [WEDNESDAY_EVENING]}

    candidates = CandidateGenerator().generate(windows, 4, 45, now)

    assert [(c.date, c.start_time, c.end_time) for c in candidates] == [
        (date(2024, 6, 3), "10:00", "10:45"),
        (date(2024, 6, 5), "17:00", "17:45"),
        (date(2024, 6, 10), "10:00", "10:45"),
        (date(2024, 6, 12), "17:00", "17:45"),
    ]
    assert all(c.source_tag == "generated" and c.confidence_label == "Medium" for c in candidates)
    assert candidates[0].reasoning == "Optimal time based on overlapping availability on Mondays"


def test_never_fabricates_extra_candidates(now):
    candidates = CandidateGenerator().generate({1: [MONDAY_MORNING]}, 12, 30, now)

    assert [c.date for c in candidates] == [
        date(2024, 6, 3), date(2024, 6, 10), date(2024, 6, 17), date(2024, 6, 24),
    ]


def test_at_most_target_count(now):
    windows = {1: [MONDAY_MORNING], 3: [WEDNESDAY_EVENING]}
    for target in range(1, 13):
        assert len(CandidateGenerator().generate(windows, target, 30, now)) <= target


def test_dates_never_before_today():
    tuesday = datetime(2024, 6, 4, 8, 0)
    windows = {1: [MONDAY_MORNING], 2: [WeeklyInterval(2, 540, 600)]}

    candidates = CandidateGenerator().generate(windows, 8, 30, tuesday)

    assert all(c.date >= tuesday.date() for c in candidates)
    assert candidates[0].date == date(2024, 6, 10)
    assert candidates[1].date == date(2024, 6, 4)


def test_empty_windows(now):
    assert CandidateGenerator().generate({}, 4, 30, now) == []
    assert CandidateGenerator().generate({1: []}, 4, 30, now) == []


def test_end_time_wraps_past_midnight(now):
    late = WeeklyInterval(1, 1410, 1440)
    candidate = CandidateGenerator().generate({1: [late]}, 1, 60, now)[0]
    assert (candidate.start_time, candidate.end_time) == ("23:30", "00:30")


def test_horizon_must_be_positive():
    with pytest.raises(ValueError):
        CandidateGenerator(horizon_weeks=0)
