from datetime import date, datetime

import pytest
import pytz

from models.errors import InvalidTimeFormat
from services.time_arithmetic import combine, day_of_week, local_now, overlaps, to_hhmm, to_minutes


@pytest.mark.parametrize("value,expected", [
    ("00:00", 0),
    ("09:30", 570),
    ("9:05", 545),
    ("23:59", 1439),
])
def test_to_minutes(value, expected):
    assert to_minutes(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "abc", "", "09:30\n", " 09:30", "9:5", 930, None])
def test_to_minutes_rejects_invalid(value):
    with pytest.raises(InvalidTimeFormat):
        to_minutes(value)


def test_to_hhmm_pads_and_wraps():
    assert to_hhmm(545) == "09:05"
    assert to_hhmm(1440 + 30) == "00:30"


def test_minute_round_trip():
    for minute in range(0, 1440, 7):
        assert to_minutes(to_hhmm(minute)) == minute


def test_string_round_trip_normalises_hour_padding():
    for value in ["00:00", "09:05", "12:30", "23:59"]:
        assert to_hhmm(to_minutes(value)) == value
    assert to_hhmm(to_minutes("9:05")) == "09:05"


def test_overlaps_is_half_open():
    assert overlaps(600, 660, 630, 700)
    assert not overlaps(600, 660, 660, 720)
    assert not overlaps(660, 720, 600, 660)


def test_overlaps_symmetric_and_reflexive():
    spans = [(0, 30), (15, 45), (30, 60), (100, 200), (150, 160)]
    for a in spans:
        assert overlaps(*a, *a)
        for b in spans:
            assert overlaps(*a, *b) == overlaps(*b, *a)


def test_day_of_week_sunday_is_zero():
    assert day_of_week(date(2024, 6, 2)) == 0
    assert day_of_week(date(2024, 6, 3)) == 1
    assert day_of_week(date(2024, 6, 8)) == 6


def test_local_now_converts_aware_values():
    aware = pytz.UTC.localize(datetime(2024, 6, 3, 12, 0))
    assert local_now(aware, "America/New_York") == datetime(2024, 6, 3, 8, 0)


def test_local_now_keeps_naive_values():
    naive = datetime(2024, 6, 3, 12, 0)
    assert local_now(naive, "Asia/Tokyo") == naive


def test_combine_rolls_past_midnight():
    assert combine(date(2024, 6, 3), 1440 + 15) == datetime(2024, 6, 4, 0, 15)
