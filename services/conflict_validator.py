"""Filters candidate lists against the current time and active commitments."""

import logging
from datetime import datetime
from typing import Iterable, Optional

from models.entities import Candidate, Commitment
from services.time_arithmetic import combine, overlaps, to_minutes

logger = logging.getLogger(__name__)


def candidate_span(candidate: Candidate) -> tuple[datetime, datetime]:
    """Absolute [start, end) of a candidate."""
    start = to_minutes(candidate.start_time)
    return (
        combine(candidate.date, start),
        combine(candidate.date, start + candidate.duration_minutes),
    )


def commitment_span(commitment: Commitment) -> tuple[datetime, datetime]:
    """Absolute [start, end) of a commitment."""
    return (
        combine(commitment.date, commitment.start_minute),
        combine(commitment.date, commitment.end_minute),
    )


class ConflictValidator:
    """
    Advisory conflict filter.

    Applied identically to deterministic and generative candidates. Passing it
    does not guarantee a later confirm succeeds; the booking guard is the
    authoritative check.
    """

    def validate(
        self,
        candidates: Iterable[Candidate],
        active_commitments: Iterable[Commitment],
        now: datetime,
        consumer_id: Optional[str] = None,
        service_id: Optional[str] = None,
        provider_id: Optional[str] = None
    ) -> list[Candidate]:
        """
        Drop past candidates and candidates colliding with related commitments.

        Args:
            candidates: candidates in generation order
            active_commitments: commitments to check against; inactive ones are ignored
            now: current naive local time
            consumer_id: commitments of this consumer block overlapping candidates
            service_id: commitments for this service block overlapping candidates
            provider_id: optional, commitments with this provider block too

        Returns:
            Surviving candidates, order preserved
        """
        blocking = [
            commitment_span(c) for c in active_commitments
            if c.is_active and self._is_related(c, consumer_id, service_id, provider_id)
        ]

        accepted: list[Candidate] = []
        for candidate in candidates:
            start, end = candidate_span(candidate)
            if start <= now:
                logger.debug("Dropping past candidate %s %s", candidate.date, candidate.start_time)
                continue
            if any(overlaps(start, end, b_start, b_end) for b_start, b_end in blocking):
                logger.debug("Dropping conflicting candidate %s %s", candidate.date, candidate.start_time)
                continue
            accepted.append(candidate)

        return accepted

    @staticmethod
    def _is_related(
        commitment: Commitment,
        consumer_id: Optional[str],
        service_id: Optional[str],
        provider_id: Optional[str]
    ) -> bool:
        return (
            (consumer_id is not None and commitment.consumer_id == consumer_id)
            or (service_id is not None and commitment.service_id == service_id)
            or (provider_id is not None and commitment.provider_id == provider_id)
        )
