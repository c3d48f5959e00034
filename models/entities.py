"""Domain models for the appointment slot suggestion engine."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Literal, Optional

from models.errors import MalformedAvailabilityEntry

MINUTES_PER_DAY = 1440

CommitmentStatus = Literal["pending", "confirmed", "completed", "cancelled", "no_show"]
COMMITMENT_STATUSES: tuple[str, ...] = ("pending", "confirmed", "completed", "cancelled", "no_show")
ACTIVE_STATUSES: tuple[str, ...] = ("pending", "confirmed")
TERMINAL_STATUSES: tuple[str, ...] = ("completed", "cancelled", "no_show")

SourceTag = Literal["generated", "ai-enhanced"]


@dataclass(frozen=True)
class WeeklyInterval:
    """A recurring open interval on one day of the week (0 = Sunday)."""
    day_of_week: int
    start: int  # minute of day
    end: int  # minute of day, exclusive

    def __post_init__(self):
        if not isinstance(self.day_of_week, int) or not 0 <= self.day_of_week <= 6:
            raise MalformedAvailabilityEntry(f"day_of_week out of range: {self.day_of_week!r}")
        if not 0 <= self.start < self.end <= MINUTES_PER_DAY:
            raise MalformedAvailabilityEntry(
                f"interval must satisfy 0 <= start < end <= 1440, got {self.start}-{self.end}"
            )


# dayOfWeek -> intervals ordered by start
AvailabilitySet = dict[int, list[WeeklyInterval]]


@dataclass
class ConsumerProfile:
    """A client who books services."""
    consumer_id: str
    full_name: str
    email: str
    slots: list = field(default_factory=list)  # raw availability encodings


@dataclass
class ProviderProfile:
    """A business offering services."""
    provider_id: str
    business_name: str
    schedule: list = field(default_factory=list)  # raw schedule rows


@dataclass
class ProviderScheduleRow:
    """One raw provider schedule record (one per day of week)."""
    day_of_week: int
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    time_slots: list[dict] = field(default_factory=list)


@dataclass
class ServiceDescriptor:
    """A bookable service offered by a provider."""
    service_id: str
    provider_id: str
    name: str
    duration_minutes: int
    slot_mask: AvailabilitySet = field(default_factory=dict)  # empty = unrestricted
    price: float = 0.0
    category: str = "General"
    is_active: bool = True


@dataclass
class Commitment:
    """A durable appointment between a consumer and a provider."""
    commitment_id: str
    consumer_id: str
    provider_id: str
    service_id: str
    date: date
    start_minute: int
    end_minute: int
    status: CommitmentStatus = "pending"
    total_amount: float = 0.0
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def start_time(self) -> str:
        return f"{self.start_minute // 60 % 24:02d}:{self.start_minute % 60:02d}"

    @property
    def end_time(self) -> str:
        return f"{self.end_minute // 60 % 24:02d}:{self.end_minute % 60:02d}"

    @property
    def starts_at(self) -> datetime:
        """Naive local datetime of the appointment start."""
        return datetime.combine(self.date, time(self.start_minute // 60, self.start_minute % 60))


@dataclass
class Candidate:
    """A proposed, not-yet-confirmed appointment time."""
    date: date
    start_time: str
    end_time: str
    day_of_week: int
    duration_minutes: int
    reasoning: str
    confidence_label: str = "Medium"
    source_tag: SourceTag = "generated"


@dataclass
class SuggestionResult:
    """Outcome of one suggestion request. An empty candidate list is a valid outcome."""
    candidates: list[Candidate]
    reasoning: str
    source_tag: SourceTag = "generated"
    fell_back: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.candidates


@dataclass
class BookingResult:
    """Result of booking one candidate during auto-booking."""
    date: date
    start_time: str
    status: Literal["booked", "failed"]
    commitment_id: Optional[str] = None
    error: Optional[str] = None
