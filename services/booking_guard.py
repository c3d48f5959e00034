"""Authoritative conflict check executed when a commitment is created."""

import logging
from datetime import date, datetime, timedelta

from models.errors import PastAppointment, SlotConflict
from services.collaborators import CommitmentStore
from services.conflict_validator import commitment_span
from services.time_arithmetic import combine, overlaps, to_hhmm

logger = logging.getLogger(__name__)


class BookingConflictGuard:
    """
    Final check before a commitment write.

    The read of active commitments and the subsequent insert are not atomic.
    Callers needing a hard guarantee must serialize guard+insert per provider
    or rely on a storage-level uniqueness constraint.
    """

    def __init__(self, store: CommitmentStore):
        """Initialize guard with the commitment store it reads from."""
        self.store = store

    def check(
        self,
        provider_id: str,
        on_date: date,
        start_minute: int,
        end_minute: int,
        now: datetime
    ) -> None:
        """
        Raise if the provider's [start, end) on the date cannot be booked.

        Raises:
            SlotConflict: an active commitment of the provider overlaps
            PastAppointment: the slot does not start after now
        """
        start = combine(on_date, start_minute)
        end = combine(on_date, end_minute)

        # neighbouring days can hold appointments that cross midnight
        last_day = on_date + timedelta(days=1)
        active = self.store.find_active_commitments(
            provider_id=provider_id, from_date=on_date - timedelta(days=1)
        )
        conflicting = [
            c.commitment_id for c in active
            if c.date <= last_day and overlaps(start, end, *commitment_span(c))
        ]
        if conflicting:
            logger.info(
                "Slot conflict for provider %s on %s at %s: %s",
                provider_id, on_date.isoformat(), to_hhmm(start_minute), conflicting,
            )
            raise SlotConflict(provider_id, on_date.isoformat(), to_hhmm(start_minute), conflicting)

        if start <= now:
            raise PastAppointment(on_date.isoformat(), to_hhmm(start_minute))
