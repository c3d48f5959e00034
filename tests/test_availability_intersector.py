import copy

import pytest

from models.entities import WeeklyInterval
from services.availability_intersector import common_windows, effective_provider_availability, ordered_windows


def interval(day, start, end):
    return WeeklyInterval(day, start * 60, end * 60)


PROVIDER = {1: [interval(1, 9, 17)], 3: [interval(3, 9, 17)]}


def test_empty_mask_means_unrestricted():
    effective = effective_provider_availability(PROVIDER, {})
    assert effective == PROVIDER
    assert effective is not PROVIDER
    assert effective[1] is not PROVIDER[1]


def test_first_policy_keeps_first_overlapping_mask_interval():
    mask = {1: [interval(1, 9, 10), interval(1, 13, 14)]}

    effective = effective_provider_availability(PROVIDER, mask)

    assert effective == {1: [interval(1, 9, 10)]}


def test_union_policy_keeps_every_overlap():
    mask = {1: [interval(1, 9, 10), interval(1, 13, 14)]}

    effective = effective_provider_availability(PROVIDER, mask, policy="union")

    assert effective == {1: [interval(1, 9, 10), interval(1, 13, 14)]}


def test_mask_clips_to_provider_hours():
    mask = {3: [interval(3, 7, 10)]}
    assert effective_provider_availability(PROVIDER, mask) == {3: [interval(3, 9, 10)]}


def test_masked_day_without_overlap_is_dropped():
    mask = {1: [interval(1, 18, 20)], 3: [interval(3, 9, 12)]}
    assert effective_provider_availability(PROVIDER, mask) == {3: [interval(3, 9, 12)]}


def test_unknown_policy():
    with pytest.raises(ValueError):
        effective_provider_availability(PROVIDER, {}, policy="all")


def test_common_windows():
    consumer = {
        1: [interval(1, 8, 10), interval(1, 16, 18)],
        3: [interval(3, 18, 20)],
        5: [interval(5, 9, 17)],
    }

    windows = common_windows(PROVIDER, consumer)

    assert windows == {
        1: [interval(1, 9, 10), interval(1, 16, 17)],
        3: [],
    }


def test_touching_intervals_do_not_form_a_window():
    consumer = {1: [interval(1, 17, 19)]}
    assert common_windows(PROVIDER, consumer) == {1: []}


def test_intersection_is_pure():
    mask = {1: [interval(1, 9, 12)]}
    consumer = {1: [interval(1, 10, 11)]}
    provider_before = copy.deepcopy(PROVIDER)
    mask_before = copy.deepcopy(mask)
    consumer_before = copy.deepcopy(consumer)

    first = common_windows(effective_provider_availability(PROVIDER, mask), consumer)
    second = common_windows(effective_provider_availability(PROVIDER, mask), consumer)

    assert first == second == {1: [interval(1, 10, 11)]}
    assert PROVIDER == provider_before
    assert mask == mask_before
    assert consumer == consumer_before


def test_ordered_windows():
    windows = {3: [interval(3, 9, 10)], 1: [interval(1, 14, 15), interval(1, 9, 10)]}
    assert ordered_windows(windows) == [interval(1, 9, 10), interval(1, 14, 15), interval(3, 9, 10)]
