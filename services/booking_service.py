"""Commitment creation, status changes and auto-booking."""

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from models.entities import COMMITMENT_STATUSES, BookingResult, Candidate, Commitment
from models.errors import (
    BookingEngineError,
    CancellationWindowClosed,
    InvalidStatusTransition,
    ServiceInactive,
)
from services.booking_guard import BookingConflictGuard
from services.collaborators import CommitmentStore, ProfileService
from services.time_arithmetic import end_minute, local_now, to_minutes

logger = logging.getLogger(__name__)


def _parse_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}") from e


def _in_order(commitments: list[Commitment]) -> list[Commitment]:
    return sorted(commitments, key=lambda c: (c.date, c.start_minute))


class BookingService:
    """Creates and manages commitments behind the booking guard."""

    def __init__(
        self,
        profiles: ProfileService,
        store: CommitmentStore,
        guard: Optional[BookingConflictGuard] = None,
        timezone: str = "UTC",
        cancellation_notice_hours: int = 24
    ):
        """
        Initialize booking service.

        Args:
            profiles: source of service descriptors
            store: commitment store written to
            guard: conflict guard; defaults to one reading the same store
            timezone: booking timezone used to resolve "now"
            cancellation_notice_hours: minimum notice for a cancellation
        """
        self.profiles = profiles
        self.store = store
        self.guard = guard or BookingConflictGuard(store)
        self.timezone = timezone
        self.cancellation_notice_hours = cancellation_notice_hours

    def validate_and_create_commitment(
        self,
        consumer_id: str,
        service_id: str,
        date: Union[str, date],
        start_time: str,
        now: Optional[datetime] = None,
        notes: Optional[str] = None
    ) -> Commitment:
        """
        Create a pending commitment after the authoritative conflict check.

        Raises:
            InvalidTimeFormat: start_time is not HH:MM
            ServiceInactive: the service cannot be booked
            SlotConflict: the provider already has an overlapping commitment
            PastAppointment: the slot does not start in the future
        """
        on_date = _parse_date(date)
        start = to_minutes(start_time)
        current = local_now(now, self.timezone)

        service = self.profiles.get_service_descriptor(service_id)
        if not service.is_active:
            raise ServiceInactive(service_id)

        end = end_minute(start, service.duration_minutes)
        self.guard.check(service.provider_id, on_date, start, end, current)

        commitment = self.store.insert_commitment(Commitment(
            commitment_id="",
            consumer_id=consumer_id,
            provider_id=service.provider_id,
            service_id=service.service_id,
            date=on_date,
            start_minute=start,
            end_minute=end,
            status="pending",
            total_amount=service.price,
            notes=notes,
            created_at=current,
        ))
        logger.info(
            "Booked %s for consumer %s on %s at %s",
            service.name, consumer_id, on_date.isoformat(), commitment.start_time,
        )
        return commitment

    def update_status(
        self,
        commitment_id: str,
        new_status: str,
        now: Optional[datetime] = None,
        reason: Optional[str] = None
    ) -> Commitment:
        """
        Move a commitment to a new status.

        Completed, cancelled and no-show commitments are final. Cancelling
        needs more than cancellation_notice_hours before the start.

        Raises:
            ValueError: unknown status
            NotFound: no such commitment
            InvalidStatusTransition: the commitment is already final
            CancellationWindowClosed: too late to cancel
        """
        if new_status not in COMMITMENT_STATUSES:
            raise ValueError(f"Unknown commitment status: {new_status}")

        current = local_now(now, self.timezone)
        commitment = self.store.get_commitment(commitment_id)
        if commitment.is_terminal:
            raise InvalidStatusTransition(commitment.status, new_status)

        changes: dict = {"status": new_status}
        if new_status == "cancelled":
            if commitment.starts_at <= current + timedelta(hours=self.cancellation_notice_hours):
                raise CancellationWindowClosed(self.cancellation_notice_hours)
            changes["cancelled_at"] = current
            changes["cancellation_reason"] = reason
        elif new_status == "completed":
            changes["completed_at"] = current

        updated = self.store.update_commitment(replace(commitment, **changes))
        logger.info("Commitment %s: %s -> %s", commitment_id, commitment.status, new_status)
        return updated

    def auto_book(
        self,
        consumer_id: str,
        service_id: str,
        candidates: Iterable[Candidate],
        now: Optional[datetime] = None,
        notes: Optional[str] = None
    ) -> list[BookingResult]:
        """Book every candidate; each failure is reported in its result instead of raised."""
        results = []
        for candidate in candidates:
            try:
                commitment = self.validate_and_create_commitment(
                    consumer_id,
                    service_id,
                    candidate.date,
                    candidate.start_time,
                    now=now,
                    notes=notes,
                )
            except BookingEngineError as e:
                logger.info("Auto-book failed for %s %s: %s", candidate.date, candidate.start_time, e)
                results.append(BookingResult(
                    date=candidate.date,
                    start_time=candidate.start_time,
                    status="failed",
                    error=str(e),
                ))
                continue

            results.append(BookingResult(
                date=candidate.date,
                start_time=candidate.start_time,
                status="booked",
                commitment_id=commitment.commitment_id,
            ))

        booked = sum(1 for r in results if r.status == "booked")
        logger.info("Auto-booked %d of %d candidate(s) for consumer %s", booked, len(results), consumer_id)
        return results

    def upcoming_for_consumer(
        self,
        consumer_id: str,
        now: Optional[datetime] = None,
        limit: int = 10
    ) -> list[Commitment]:
        """Active commitments of a consumer from today onward."""
        today = local_now(now, self.timezone).date()
        return _in_order(self.store.find_active_commitments(consumer_id=consumer_id, from_date=today))[:limit]

    def upcoming_for_provider(
        self,
        provider_id: str,
        now: Optional[datetime] = None,
        limit: int = 10
    ) -> list[Commitment]:
        today = local_now(now, self.timezone).date()
        return _in_order(self.store.find_active_commitments(provider_id=provider_id, from_date=today))[:limit]
