"""Domain exceptions for the booking engine."""

from typing import Optional


class BookingEngineError(Exception):
    """Base class for all booking engine errors."""
    pass


class InvalidTimeFormat(BookingEngineError, ValueError):
    """A time string is not a 24-hour HH:MM value."""

    def __init__(self, value):
        super().__init__(f"Invalid time format (expected HH:MM): {value!r}")
        self.value = value


class MalformedAvailabilityEntry(BookingEngineError, ValueError):
    """
    An availability entry could not be parsed.

    Raised per entry by the parsers and caught by them; a single bad entry
    never aborts the whole parse.
    """

    def __init__(self, message: str, entry=None):
        super().__init__(message)
        self.entry = entry


class ExternalServiceUnavailable(BookingEngineError):
    """A collaborator service timed out or returned an error."""

    def __init__(self, message: str, service: str = "unknown"):
        super().__init__(message)
        self.service = service


class SlotConflict(BookingEngineError):
    """
    The requested time is no longer available.

    Attributes:
        provider_id: provider whose calendar holds the conflict
        date: ISO date of the requested slot
        start_time: requested start (HH:MM)
        conflicting_ids: ids of the active commitments that overlap
    """

    def __init__(
        self,
        provider_id: str,
        date: str,
        start_time: str,
        conflicting_ids: Optional[list[str]] = None
    ):
        super().__init__(
            f"Time slot {date} {start_time} is no longer available for provider {provider_id}"
        )
        self.provider_id = provider_id
        self.date = date
        self.start_time = start_time
        self.conflicting_ids = conflicting_ids or []


class PastAppointment(BookingEngineError):
    """The requested appointment does not start in the future."""

    def __init__(self, date: str, start_time: str):
        super().__init__(f"Appointment must be in the future: {date} {start_time}")
        self.date = date
        self.start_time = start_time


class InvalidStatusTransition(BookingEngineError):
    """A commitment in a terminal status cannot change status."""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change commitment status from {current} to {requested}")
        self.current = current
        self.requested = requested


class CancellationWindowClosed(BookingEngineError):
    """The appointment is too close to be cancelled."""

    def __init__(self, notice_hours: int):
        super().__init__(
            f"Cannot cancel a commitment less than {notice_hours} hours before the appointment"
        )
        self.notice_hours = notice_hours


class ServiceInactive(BookingEngineError):
    """The service is not currently bookable."""

    def __init__(self, service_id: str):
        super().__init__(f"Service is not available: {service_id}")
        self.service_id = service_id


class NotFound(BookingEngineError, LookupError):
    """A consumer, service, provider or commitment does not exist."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier
