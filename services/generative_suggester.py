"""
Suggesters: deterministic, generative, and the re-validating wrapper.

The generative path asks a chat model to pick appointment times from the
common windows. Its answer is never trusted for correctness: any transport
error, timeout or malformed reply falls back entirely to the deterministic
suggester, and every candidate it does return goes back through the same
ConflictValidator used for deterministic output.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any, Optional, Protocol

import openai
from openai import OpenAI

from models.entities import AvailabilitySet, Candidate, Commitment, ServiceDescriptor, SuggestionResult, WeeklyInterval
from models.errors import ExternalServiceUnavailable, InvalidTimeFormat
from services.availability_model import summarize
from services.candidate_generator import CandidateGenerator
from services.collaborators import TextGenerationClient
from services.conflict_validator import ConflictValidator
from services.time_arithmetic import day_name, day_of_week, end_minute, to_hhmm, to_minutes

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert appointment scheduling assistant. Analyze the provided "
    "schedules and suggest optimal booking times. Respond with valid JSON only."
)

CONFIDENCE_LABELS = {"high": "High", "medium": "Medium", "low": "Low"}


@dataclass
class SuggestionContext:
    """Everything one suggestion request needs, fetched fresh per request."""
    consumer_id: str
    service: ServiceDescriptor
    consumer_availability: AvailabilitySet
    provider_availability: AvailabilitySet
    windows: dict[int, list[WeeklyInterval]]
    target_count: int
    now: datetime
    active_commitments: list[Commitment] = field(default_factory=list)

    @property
    def has_windows(self) -> bool:
        return any(self.windows.values())


class Suggester(Protocol):
    """Produces a suggestion result for a request context."""

    def suggest(self, context: SuggestionContext) -> SuggestionResult:
        ...


class OpenAITextClient:
    """Text generation through OpenAI chat completions."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout: float = 10.0):
        """Initialize client with a bounded request timeout and no retries."""
        self.model = model
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        response_format: str = "json"
    ) -> str:
        """Return the model's reply text."""
        kwargs: dict[str, Any] = {}
        if response_format == "json":
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs
            )
        except openai.APITimeoutError as e:
            raise ExternalServiceUnavailable(f"OpenAI request timed out: {e}", service="openai") from e
        except openai.OpenAIError as e:
            raise ExternalServiceUnavailable(f"OpenAI request failed: {e}", service="openai") from e

        if not getattr(response, "choices", None):
            raise ExternalServiceUnavailable("OpenAI reply contained no choices", service="openai")
        return response.choices[0].message.content or ""


def build_prompt(context: SuggestionContext) -> str:
    """Structured prompt describing availability, the service and booking preferences."""
    service = context.service
    today = context.now.date()

    def lines(availability: dict[int, list[str]]) -> str:
        if not availability:
            return "None"
        return "\n".join(f"{day_name(day)}: {', '.join(ranges)}" for day, ranges in availability.items())

    windows = {
        day: [f"{to_hhmm(w.start)}-{to_hhmm(w.end)}" for w in intervals]
        for day, intervals in sorted(context.windows.items()) if intervals
    }
    existing = ", ".join(
        f"{c.date.isoformat()} at {c.start_time}" for c in context.active_commitments
    ) or "None"

    return f"""
Please analyze the following scheduling data and suggest optimal appointment times.

TODAY: {today.isoformat()} ({day_name(day_of_week(today))}), current time {context.now.strftime('%H:%M')}

CLIENT AVAILABILITY:
{lines(summarize(context.consumer_availability))}

PROVIDER AVAILABILITY:
{lines(summarize(context.provider_availability))}

COMMON WINDOWS (the only acceptable start times fall inside these):
{lines(windows)}

SERVICE DETAILS:
- Name: {service.name}
- Duration: {service.duration_minutes} minutes
- Category: {service.category or 'General'}

BOOKING PREFERENCES:
- Frequency: {context.target_count} appointments per month
- Existing bookings: {existing}

REQUIREMENTS:
1. Only suggest start times inside the common windows
2. Suggest at most {context.target_count} appointments within the next 4 weeks, after the current time
3. Distribute appointments evenly across the weeks
4. Avoid conflicts with existing bookings
5. Prefer consistent days and times for regular appointments

Respond in JSON format:
{{
  "suggestions": [
    {{"date": "YYYY-MM-DD", "time": "HH:MM", "dayOfWeek": "Monday", "reasoning": "Why this time is optimal"}}
  ],
  "reasoning": "Overall explanation of the scheduling strategy",
  "confidence": "High/Medium/Low"
}}
"""


def _fits_window(day: int, start: int, windows: dict[int, list[WeeklyInterval]]) -> bool:
    return any(w.start <= start < w.end for w in windows.get(day, []))


def parse_response(
    text: str,
    context: SuggestionContext,
    horizon_weeks: int = 4
) -> tuple[list[Candidate], str]:
    """
    Map a model reply to candidates.

    Raises:
        ValueError: the reply is not a JSON object with a suggestions list

    Individual suggestions with a bad date or time, a start outside the
    common windows, a date outside the horizon, or a duplicate start are
    dropped with a warning. The day of week is recomputed from the date.
    """
    payload = json.loads(text)
    if not isinstance(payload, dict):
        raise ValueError("reply is not a JSON object")
    suggestions = payload.get("suggestions")
    if not isinstance(suggestions, list):
        raise ValueError("reply has no suggestions list")

    confidence = CONFIDENCE_LABELS.get(str(payload.get("confidence", "")).strip().lower(), "Medium")
    reasoning = str(payload.get("reasoning") or "AI-generated optimal time suggestions based on your availability.")
    duration = context.service.duration_minutes
    today = context.now.date()
    horizon_end = today + timedelta(weeks=horizon_weeks)

    candidates: list[Candidate] = []
    seen: set[tuple[date, int]] = set()
    for item in suggestions:
        if len(candidates) >= context.target_count:
            break
        try:
            if not isinstance(item, dict):
                raise ValueError("suggestion is not an object")
            when = date.fromisoformat(str(item["date"]))
            start = to_minutes(item["time"])
        except (KeyError, ValueError, InvalidTimeFormat) as e:
            logger.warning("Dropping invalid AI suggestion %r: %s", item, e)
            continue

        dow = day_of_week(when)
        if not today <= when <= horizon_end:
            logger.warning("Dropping AI suggestion outside the horizon: %s", when)
            continue
        if not _fits_window(dow, start, context.windows):
            logger.warning("Dropping AI suggestion outside common windows: %s %s", when, item["time"])
            continue
        if (when, start) in seen:
            continue
        seen.add((when, start))

        candidates.append(Candidate(
            date=when,
            start_time=to_hhmm(start),
            end_time=to_hhmm(end_minute(start, duration)),
            day_of_week=dow,
            duration_minutes=duration,
            reasoning=str(item.get("reasoning") or f"Suggested {day_name(dow)} appointment"),
            confidence_label=confidence,
            source_tag="ai-enhanced",
        ))

    return candidates, reasoning


class DeterministicSuggester:
    """CandidateGenerator output filtered through the ConflictValidator."""

    def __init__(self, generator: CandidateGenerator, validator: ConflictValidator):
        self.generator = generator
        self.validator = validator

    def suggest(self, context: SuggestionContext) -> SuggestionResult:
        candidates = self.generator.generate(
            context.windows,
            context.target_count,
            context.service.duration_minutes,
            context.now,
        )
        candidates = self.validator.validate(
            candidates,
            context.active_commitments,
            context.now,
            consumer_id=context.consumer_id,
            service_id=context.service.service_id,
            provider_id=context.service.provider_id,
        )
        if not context.has_windows:
            reasoning = "No overlapping availability between you and the provider."
        else:
            reasoning = "Basic scheduling algorithm used: earliest common windows spread across the next weeks."
        return SuggestionResult(candidates=candidates, reasoning=reasoning, source_tag="generated")


class GenerativeSuggester:
    """
    Asks a text generation service for slot choices.

    Falls back to the deterministic suggester on any failure. Its own output
    is not validated here; wrap it in RevalidatingSuggester.
    """

    def __init__(
        self,
        client: TextGenerationClient,
        fallback: DeterministicSuggester,
        max_tokens: int = 800,
        temperature: float = 0.3,
        horizon_weeks: int = 4
    ):
        self.client = client
        self.fallback = fallback
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.horizon_weeks = horizon_weeks

    def suggest(self, context: SuggestionContext) -> SuggestionResult:
        if not context.has_windows:
            # nothing for the model to choose from
            return self.fallback.suggest(context)

        try:
            text = self.client.complete(
                build_prompt(context),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                response_format="json",
            )
            candidates, reasoning = parse_response(text, context, self.horizon_weeks)
        except ExternalServiceUnavailable as e:
            logger.info("Generative service unavailable, using fallback: %s", e)
            return self._fall_back(context)
        except (ValueError, TypeError) as e:
            logger.info("Unusable generative reply, using fallback: %s", e)
            return self._fall_back(context)
        except Exception as e:
            logger.warning("Generative suggester failed, using fallback: %s", e, exc_info=True)
            return self._fall_back(context)

        return SuggestionResult(candidates=candidates, reasoning=reasoning, source_tag="ai-enhanced")

    def _fall_back(self, context: SuggestionContext) -> SuggestionResult:
        result = self.fallback.suggest(context)
        return replace(result, fell_back=True)


class RevalidatingSuggester:
    """Runs every candidate of the wrapped suggester through the ConflictValidator."""

    def __init__(self, inner: Suggester, validator: ConflictValidator):
        self.inner = inner
        self.validator = validator

    def suggest(self, context: SuggestionContext) -> SuggestionResult:
        result = self.inner.suggest(context)
        validated = self.validator.validate(
            result.candidates,
            context.active_commitments,
            context.now,
            consumer_id=context.consumer_id,
            service_id=context.service.service_id,
            provider_id=context.service.provider_id,
        )
        dropped = len(result.candidates) - len(validated)
        if dropped:
            logger.info("Re-validation dropped %d %s candidate(s)", dropped, result.source_tag)
        return replace(result, candidates=validated)


def build_suggester(
    generator: CandidateGenerator,
    validator: ConflictValidator,
    client: Optional[TextGenerationClient] = None,
    max_tokens: int = 800,
    temperature: float = 0.3
) -> Suggester:
    """Deterministic suggester, or a re-validated generative one when a client is given."""
    deterministic = DeterministicSuggester(generator, validator)
    if client is None:
        return deterministic
    generative = GenerativeSuggester(
        client,
        deterministic,
        max_tokens=max_tokens,
        temperature=temperature,
        horizon_weeks=generator.horizon_weeks,
    )
    return RevalidatingSuggester(generative, validator)
