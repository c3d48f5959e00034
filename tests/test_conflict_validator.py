import random
from datetime import date, datetime, timedelta

from conftest import MONDAY, make_commitment
from models.entities import Candidate
from services.conflict_validator import ConflictValidator, candidate_span, commitment_span
from services.time_arithmetic import day_of_week, end_minute, to_hhmm


def candidate_at(on_date: date, start: int, duration: int = 30) -> Candidate:
    return Candidate(
        date=on_date,
        start_time=to_hhmm(start),
        end_time=to_hhmm(end_minute(start, duration)),
        day_of_week=day_of_week(on_date),
        duration_minutes=duration,
        reasoning="test",
    )


def test_drops_candidates_not_after_now():
    now = datetime(2024, 6, 3, 10, 0)
    candidates = [candidate_at(MONDAY, 570), candidate_at(MONDAY, 600), candidate_at(MONDAY, 630)]

    accepted = ConflictValidator().validate(candidates, [], now, consumer_id="cons_a")

    assert [c.start_time for c in accepted] == ["10:30"]


def test_drops_overlap_with_consumer_or_service(now):
    commitments = [
        make_commitment("by_consumer", MONDAY, 600, 630, service_id="other"),
        make_commitment("by_service", MONDAY, 720, 750, consumer_id="someone"),
    ]
    candidates = [candidate_at(MONDAY, m) for m in (600, 630, 720, 735, 900)]

    accepted = ConflictValidator().validate(candidates, commitments, now, consumer_id="cons_a", service_id="svc_a")

    assert [c.start_time for c in accepted] == ["10:30", "15:00"]


def test_unrelated_and_inactive_commitments_are_ignored(now):
    commitments = [
        make_commitment("other", MONDAY, 600, 630, consumer_id="x", service_id="y", provider_id="z"),
        make_commitment("gone", MONDAY, 600, 630, status="cancelled"),
        make_commitment("done", MONDAY, 600, 630, status="completed"),
    ]

    accepted = ConflictValidator().validate([candidate_at(MONDAY, 600)], commitments, now, "cons_a", "svc_a")

    assert len(accepted) == 1


def test_provider_commitments_block_when_given(now):
    commitments = [make_commitment("p", MONDAY, 600, 630, consumer_id="x", service_id="y")]
    validator = ConflictValidator()

    assert validator.validate([candidate_at(MONDAY, 600)], commitments, now, "cons_a", "svc_a") != []
    assert validator.validate(
        [candidate_at(MONDAY, 600)], commitments, now, "cons_a", "svc_a", provider_id="prov_a"
    ) == []


def test_against_brute_force(now):
    rng = random.Random(7)
    days = [MONDAY + timedelta(days=i) for i in range(-1, 5)]
    commitments = [
        make_commitment(
            f"c{i}", rng.choice(days), start, start + rng.choice((15, 30, 60)),
            consumer_id=rng.choice(["cons_a", "cons_b"]),
            service_id=rng.choice(["svc_a", "svc_b"]),
            status=rng.choice(["pending", "confirmed", "cancelled"]),
        )
        for i, start in enumerate(rng.randrange(0, 1400, 5) for _ in range(40))
    ]
    candidates = [
        candidate_at(rng.choice(days), rng.randrange(0, 1440, 15), rng.choice((30, 45, 90)))
        for _ in range(300)
    ]

    accepted = ConflictValidator().validate(candidates, commitments, now, consumer_id="cons_a", service_id="svc_a")

    def allowed(candidate):
        start, end = candidate_span(candidate)
        if start <= now:
            return False
        for c in commitments:
            if not c.is_active or (c.consumer_id != "cons_a" and c.service_id != "svc_a"):
                continue
            c_start, c_end = commitment_span(c)
            if start < c_end and c_start < end:
                return False
        return True

    assert accepted == [c for c in candidates if allowed(c)]


def test_overlap_runs_past_midnight(now):
    late = make_commitment("late", MONDAY, 1410, 1470)
    next_morning = candidate_at(MONDAY + timedelta(days=1), 15)

    assert ConflictValidator().validate([next_morning], [late], now, consumer_id="cons_a") == []
