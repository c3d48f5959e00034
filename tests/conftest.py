"""Shared fixtures: a small deterministic world pinned to early June 2024.

2024-06-02 is a Sunday and 2024-06-03 a Monday.
"""

from datetime import date, datetime
from typing import Optional

import pytest

from models.entities import Commitment, ConsumerProfile, ProviderProfile, ProviderScheduleRow, ServiceDescriptor
from models.errors import ExternalServiceUnavailable
from services.availability_model import parse_service_mask
from services.booking_service import BookingService
from services.candidate_generator import CandidateGenerator
from services.commitment_store import InMemoryCommitmentStore
from services.conflict_validator import ConflictValidator
from services.generative_suggester import DeterministicSuggester
from services.profile_store_mock import ProfileStoreMock
from services.suggestion_engine import SuggestionEngine

SUNDAY = date(2024, 6, 2)
MONDAY = date(2024, 6, 3)


def slot(day: int, start: str, end: str) -> dict:
    return {"dayOfWeek": day, "startTime": start, "endTime": end}


def make_commitment(
    commitment_id: str,
    on_date: date,
    start_minute: int,
    end_minute: int,
    consumer_id: str = "cons_a",
    provider_id: str = "prov_a",
    service_id: str = "svc_a",
    status: str = "pending"
) -> Commitment:
    return Commitment(
        commitment_id=commitment_id,
        consumer_id=consumer_id,
        provider_id=provider_id,
        service_id=service_id,
        date=on_date,
        start_minute=start_minute,
        end_minute=end_minute,
        status=status,
    )


class FakeTextClient:
    """Text generation stub returning a canned reply or raising."""

    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def complete(self, prompt, max_tokens, temperature, response_format="json"):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 6, 2, 9, 0)


@pytest.fixture
def profiles() -> ProfileStoreMock:
    """Provider open Mon 09-17, a 30 minute service masked to Mon 09-12, consumer free Mon 10-11."""
    store = ProfileStoreMock(seed=False)
    store.add_provider(ProviderProfile(
        provider_id="prov_a",
        business_name="Test Clinic",
        schedule=[
            ProviderScheduleRow(day_of_week=day, is_available=day == 1, start_time="09:00", end_time="17:00")
            for day in range(7)
        ],
    ))
    store.add_service(ServiceDescriptor(
        service_id="svc_a",
        provider_id="prov_a",
        name="Consultation",
        duration_minutes=30,
        slot_mask=parse_service_mask([slot(1, "09:00", "12:00")]),
        price=50.0,
    ))
    store.add_service(ServiceDescriptor(
        service_id="svc_closed",
        provider_id="prov_a",
        name="Retired Service",
        duration_minutes=30,
        is_active=False,
    ))
    store.add_consumer(ConsumerProfile(
        consumer_id="cons_a",
        full_name="Alex Doe",
        email="alex@example.com",
        slots=[slot(1, "10:00", "11:00")],
    ))
    store.add_consumer(ConsumerProfile(
        consumer_id="cons_sunday",
        full_name="Sam Sunday",
        email="sam@example.com",
        slots=[slot(0, "10:00", "12:00")],
    ))
    return store


@pytest.fixture
def store() -> InMemoryCommitmentStore:
    return InMemoryCommitmentStore()


@pytest.fixture
def deterministic() -> DeterministicSuggester:
    return DeterministicSuggester(CandidateGenerator(), ConflictValidator())


@pytest.fixture
def engine(profiles, store, deterministic) -> SuggestionEngine:
    return SuggestionEngine(profiles, store, deterministic)


@pytest.fixture
def booking(profiles, store) -> BookingService:
    return BookingService(profiles, store)


@pytest.fixture
def unavailable_client() -> FakeTextClient:
    return FakeTextClient(error=ExternalServiceUnavailable("timed out", service="fake"))
