from datetime import date, datetime, timedelta

import pytest

from conftest import MONDAY, make_commitment
from models.errors import NotFound, PastAppointment, SlotConflict
from services.booking_guard import BookingConflictGuard
from services.commitment_store import InMemoryCommitmentStore

TUESDAY = date(2024, 6, 4)


@pytest.fixture
def busy_store():
    return InMemoryCommitmentStore([
        make_commitment("c1", MONDAY, 600, 630),
        make_commitment("c2", MONDAY, 660, 720, status="cancelled"),
    ])


def test_overlap_raises_with_conflicting_ids(busy_store, now):
    with pytest.raises(SlotConflict) as exc_info:
        BookingConflictGuard(busy_store).check("prov_a", MONDAY, 615, 645, now)

    assert exc_info.value.conflicting_ids == ["c1"]
    assert exc_info.value.start_time == "10:15"


def test_touching_endpoints_are_free(busy_store, now):
    guard = BookingConflictGuard(busy_store)
    guard.check("prov_a", MONDAY, 630, 660, now)
    guard.check("prov_a", MONDAY, 570, 600, now)


def test_cancelled_commitments_do_not_block(busy_store, now):
    BookingConflictGuard(busy_store).check("prov_a", MONDAY, 660, 720, now)


def test_other_provider_is_free(busy_store, now):
    BookingConflictGuard(busy_store).check("prov_b", MONDAY, 600, 630, now)


def test_previous_day_commitment_running_past_midnight_blocks(now):
    store = InMemoryCommitmentStore([make_commitment("late", MONDAY, 1410, 1470)])

    with pytest.raises(SlotConflict) as exc_info:
        BookingConflictGuard(store).check("prov_a", TUESDAY, 0, 30, now)

    assert exc_info.value.conflicting_ids == ["late"]
    BookingConflictGuard(store).check("prov_a", TUESDAY, 30, 60, now)


def test_slot_running_past_midnight_sees_next_day(now):
    store = InMemoryCommitmentStore([make_commitment("early", TUESDAY, 0, 30)])

    with pytest.raises(SlotConflict) as exc_info:
        BookingConflictGuard(store).check("prov_a", MONDAY, 1410, 1470, now)

    assert exc_info.value.conflicting_ids == ["early"]


def test_commitments_two_days_away_are_ignored(now):
    store = InMemoryCommitmentStore([make_commitment("far", MONDAY + timedelta(days=2), 0, 30)])
    BookingConflictGuard(store).check("prov_a", MONDAY, 1410, 1440, now)


def test_past_slot_raises(busy_store):
    after = datetime(2024, 6, 3, 13, 0)
    with pytest.raises(PastAppointment):
        BookingConflictGuard(busy_store).check("prov_a", MONDAY, 720, 750, after)


def test_conflict_reported_before_past(busy_store):
    after = datetime(2024, 6, 3, 13, 0)
    with pytest.raises(SlotConflict):
        BookingConflictGuard(busy_store).check("prov_a", MONDAY, 600, 630, after)


def test_store_identity_filters():
    store = InMemoryCommitmentStore([
        make_commitment("a", MONDAY, 600, 630, consumer_id="x", service_id="s1", provider_id="p1"),
        make_commitment("b", MONDAY, 540, 570, consumer_id="y", service_id="s2", provider_id="p1"),
        make_commitment("c", MONDAY, 700, 730, consumer_id="z", service_id="s3", provider_id="p2"),
    ])

    assert [c.commitment_id for c in store.find_active_commitments(consumer_id="x", provider_id="p1")] == ["a"]
    assert [c.commitment_id for c in store.find_active_commitments(
        consumer_id="x", service_id="s3", match_any=True
    )] == ["a", "c"]
    assert [c.commitment_id for c in store.find_active_commitments(provider_id="p1")] == ["b", "a"]


def test_store_unique_slots_is_opt_in(now):
    duplicate = make_commitment("", MONDAY, 600, 630, consumer_id="other")

    relaxed = InMemoryCommitmentStore([make_commitment("c1", MONDAY, 600, 630)])
    stored = relaxed.insert_commitment(duplicate)
    assert stored.commitment_id

    strict = InMemoryCommitmentStore([make_commitment("c1", MONDAY, 600, 630)], unique_slots=True)
    with pytest.raises(SlotConflict) as exc_info:
        strict.insert_commitment(duplicate)
    assert exc_info.value.conflicting_ids == ["c1"]


def test_store_get_unknown():
    with pytest.raises(NotFound):
        InMemoryCommitmentStore().get_commitment("missing")
