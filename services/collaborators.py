"""
Collaborator contracts consumed by the engine.

Profiles, services and commitments live in external stores. The engine only
depends on these protocols, so in-memory mocks and REST clients are
interchangeable.
"""

from datetime import date
from typing import Any, Optional, Protocol, runtime_checkable

from models.entities import Commitment, ServiceDescriptor


@runtime_checkable
class ProfileService(Protocol):
    """Consumer and provider profile lookups."""

    def get_consumer_availability(self, consumer_id: str) -> list[Any]:
        """Raw consumer slot encodings (JSON strings or mappings)."""
        ...

    def get_provider_schedule(self, provider_id: str) -> list[Any]:
        """Raw per-day provider schedule rows."""
        ...

    def get_service_descriptor(self, service_id: str) -> ServiceDescriptor:
        """Service metadata; raises NotFound for unknown services."""
        ...


@runtime_checkable
class CommitmentStore(Protocol):
    """Durable commitment storage."""

    def find_active_commitments(
        self,
        consumer_id: Optional[str] = None,
        provider_id: Optional[str] = None,
        service_id: Optional[str] = None,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
        match_any: bool = False
    ) -> list[Commitment]:
        """
        Active (pending/confirmed) commitments matching the filter.

        Identity filters are combined with AND, or with OR when match_any is
        set. Date filters always apply.
        """
        ...

    def insert_commitment(self, commitment: Commitment) -> Commitment:
        """Persist a new commitment; may raise SlotConflict."""
        ...

    def get_commitment(self, commitment_id: str) -> Commitment:
        """Raises NotFound for unknown ids."""
        ...

    def update_commitment(self, commitment: Commitment) -> Commitment:
        ...


@runtime_checkable
class TextGenerationClient(Protocol):
    """External text generation; always treated as untrusted and optional."""

    def complete(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        response_format: str = "json"
    ) -> str:
        """Return the generated text; raises ExternalServiceUnavailable on failure."""
        ...
