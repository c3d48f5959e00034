"""In-memory commitment store."""

import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Optional

from models.entities import Commitment
from models.errors import NotFound, SlotConflict

logger = logging.getLogger(__name__)


class InMemoryCommitmentStore:
    """
    Commitment store backed by a dict.

    The store performs no locking: a guard check followed by an insert is a
    check-then-write sequence, and two concurrent confirms for overlapping
    times can both pass the guard. With unique_slots enabled the store
    rejects a second active commitment with the same (provider, date, start),
    which closes the exact-duplicate case only.
    """

    def __init__(self, commitments: Optional[list[Commitment]] = None, unique_slots: bool = False):
        """Initialize store, optionally seeded with commitments."""
        self.unique_slots = unique_slots
        self._commitments: dict[str, Commitment] = {}
        for commitment in commitments or []:
            self._commitments[commitment.commitment_id] = commitment

    def find_active_commitments(
        self,
        consumer_id: Optional[str] = None,
        provider_id: Optional[str] = None,
        service_id: Optional[str] = None,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
        match_any: bool = False
    ) -> list[Commitment]:
        """Active commitments matching the filter, ordered by date and start."""
        identity = [
            (consumer_id, "consumer_id"),
            (provider_id, "provider_id"),
            (service_id, "service_id"),
        ]
        identity = [(value, attr) for value, attr in identity if value is not None]

        result = []
        for commitment in self._commitments.values():
            if not commitment.is_active:
                continue
            if on_date is not None and commitment.date != on_date:
                continue
            if from_date is not None and commitment.date < from_date:
                continue
            if identity:
                matches = [getattr(commitment, attr) == value for value, attr in identity]
                if not (any(matches) if match_any else all(matches)):
                    continue
            result.append(commitment)

        return sorted(result, key=lambda c: (c.date, c.start_minute))

    def insert_commitment(self, commitment: Commitment) -> Commitment:
        """Persist a commitment, assigning an id when it has none."""
        if self.unique_slots and commitment.is_active:
            duplicates = [
                c.commitment_id for c in self.find_active_commitments(
                    provider_id=commitment.provider_id, on_date=commitment.date
                )
                if c.start_minute == commitment.start_minute
            ]
            if duplicates:
                raise SlotConflict(
                    commitment.provider_id,
                    commitment.date.isoformat(),
                    commitment.start_time,
                    duplicates,
                )

        if not commitment.commitment_id:
            commitment = replace(commitment, commitment_id=uuid.uuid4().hex)
        self._commitments[commitment.commitment_id] = commitment
        logger.info(
            "Stored commitment %s (provider=%s, %s %s-%s)",
            commitment.commitment_id,
            commitment.provider_id,
            commitment.date.isoformat(),
            commitment.start_time,
            commitment.end_time,
        )
        return commitment

    def get_commitment(self, commitment_id: str) -> Commitment:
        try:
            return self._commitments[commitment_id]
        except KeyError:
            raise NotFound("Commitment", commitment_id) from None

    def update_commitment(self, commitment: Commitment) -> Commitment:
        if commitment.commitment_id not in self._commitments:
            raise NotFound("Commitment", commitment.commitment_id)
        self._commitments[commitment.commitment_id] = commitment
        return commitment
