"""Core suggestion pipeline: fetch, normalise, intersect, generate, validate."""

import logging
from datetime import datetime
from typing import Optional

from models.entities import SuggestionResult
from services.availability_intersector import MaskPolicy, common_windows, effective_provider_availability
from services.availability_model import parse_consumer_slots, parse_provider_schedule
from services.candidate_generator import CandidateGenerator, validate_target_count
from services.collaborators import CommitmentStore, ProfileService
from services.commitment_api_client import CommitmentApiClient
from services.commitment_store import InMemoryCommitmentStore
from services.config import Settings
from services.conflict_validator import ConflictValidator
from services.generative_suggester import OpenAITextClient, Suggester, SuggestionContext, build_suggester
from services.profile_api_client import ProfileApiClient
from services.profile_store_mock import ProfileStoreMock
from services.time_arithmetic import local_now

logger = logging.getLogger(__name__)


class SuggestionEngine:
    """Engine for suggesting appointment times a consumer can book."""

    def __init__(
        self,
        profiles: ProfileService,
        store: CommitmentStore,
        suggester: Suggester,
        timezone: str = "UTC",
        mask_policy: MaskPolicy = "first"
    ):
        """Initialize suggestion engine."""
        self.profiles = profiles
        self.store = store
        self.suggester = suggester
        self.timezone = timezone
        self.mask_policy = mask_policy

    def generate_suggestions(
        self,
        consumer_id: str,
        service_id: str,
        target_count: int,
        now: Optional[datetime] = None
    ) -> SuggestionResult:
        """
        Suggest up to target_count appointment times for a consumer and service.

        Args:
            consumer_id: consumer requesting the appointments
            service_id: service to book
            target_count: desired appointments per month (1..12)
            now: current time; aware values are converted to the booking
                timezone, naive values are taken as local, None means the clock

        Returns:
            SuggestionResult; an empty candidate list means nothing fits

        Raises:
            ValueError: target_count out of range
            NotFound: unknown consumer, service or provider
        """
        validate_target_count(target_count)
        current = local_now(now, self.timezone)

        # Fetch fresh for every request
        service = self.profiles.get_service_descriptor(service_id)
        consumer_set = parse_consumer_slots(self.profiles.get_consumer_availability(consumer_id))
        provider_set = parse_provider_schedule(self.profiles.get_provider_schedule(service.provider_id))

        effective = effective_provider_availability(provider_set, service.slot_mask, self.mask_policy)
        windows = common_windows(effective, consumer_set)

        active = self.store.find_active_commitments(
            consumer_id=consumer_id,
            provider_id=service.provider_id,
            service_id=service.service_id,
            from_date=current.date(),
            match_any=True,
        )

        context = SuggestionContext(
            consumer_id=consumer_id,
            service=service,
            consumer_availability=consumer_set,
            provider_availability=effective,
            windows=windows,
            target_count=target_count,
            now=current,
            active_commitments=active,
        )
        result = self.suggester.suggest(context)

        logger.info(
            "Suggested %d/%d %s slot(s) for consumer %s, service %s%s",
            len(result.candidates),
            target_count,
            result.source_tag,
            consumer_id,
            service_id,
            " (fallback)" if result.fell_back else "",
        )
        return result


def build_engine(
    settings: Settings,
    profiles: ProfileService,
    store: CommitmentStore,
    use_ai: Optional[bool] = None
) -> SuggestionEngine:
    """
    Wire a SuggestionEngine from settings.

    The generative suggester is used only when AI suggestions are enabled and
    an OpenAI key is configured; otherwise the deterministic one is.
    """
    enabled = settings.use_ai_suggestions if use_ai is None else use_ai
    client = None
    if enabled and settings.openai_api_key:
        client = OpenAITextClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.llm_timeout_seconds,
        )
    elif enabled:
        logger.warning("AI suggestions requested but OPENAI_API_KEY is not set; using deterministic suggestions")

    suggester = build_suggester(
        CandidateGenerator(horizon_weeks=settings.horizon_weeks),
        ConflictValidator(),
        client=client,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )
    return SuggestionEngine(profiles, store, suggester, timezone=settings.booking_timezone)


def build_collaborators(settings: Settings) -> tuple[ProfileService, CommitmentStore]:
    """REST collaborators when their base URLs are configured, seeded in-memory ones otherwise."""
    profiles: ProfileService
    store: CommitmentStore
    if settings.profile_api_base_url:
        profiles = ProfileApiClient(settings.profile_api_base_url, timeout=settings.http_timeout_seconds)
    else:
        profiles = ProfileStoreMock()
    if settings.commitment_api_base_url:
        store = CommitmentApiClient(settings.commitment_api_base_url, timeout=settings.http_timeout_seconds)
    else:
        store = InMemoryCommitmentStore()
    logger.info(
        "Using %s profiles and %s commitments",
        type(profiles).__name__, type(store).__name__,
    )
    return profiles, store
