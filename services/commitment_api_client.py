"""REST client for the commitment store."""

import logging
from datetime import date, datetime
from typing import Any, Optional

import httpx

from models.entities import MINUTES_PER_DAY, Commitment
from models.errors import ExternalServiceUnavailable, SlotConflict
from services.profile_api_client import get_json
from services.time_arithmetic import to_minutes

logger = logging.getLogger(__name__)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _end_minute(data: dict[str, Any]) -> int:
    if data.get("endMinute"):
        return int(data["endMinute"])
    start, end = to_minutes(data["startTime"]), to_minutes(data["endTime"])
    # endTime wraps for appointments that cross midnight
    return end if end > start else end + MINUTES_PER_DAY


def commitment_from_json(data: dict[str, Any]) -> Commitment:
    """Decode a commitment document (camelCase keys, HH:MM times)."""
    return Commitment(
        commitment_id=str(data.get("id") or data.get("_id") or ""),
        consumer_id=str(data["consumerId"]),
        provider_id=str(data["providerId"]),
        service_id=str(data["serviceId"]),
        date=date.fromisoformat(str(data["date"])[:10]),
        start_minute=to_minutes(data["startTime"]),
        end_minute=_end_minute(data),
        status=data.get("status", "pending"),
        total_amount=float(data.get("totalAmount") or 0),
        notes=data.get("notes"),
        created_at=_parse_datetime(data.get("createdAt")),
        cancelled_at=_parse_datetime(data.get("cancelledAt")),
        cancellation_reason=data.get("cancellationReason"),
        completed_at=_parse_datetime(data.get("completedAt")),
    )


def commitment_to_json(commitment: Commitment) -> dict[str, Any]:
    """Encode a commitment; endMinute keeps appointments that run past midnight exact."""
    def stamp(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    return {
        "id": commitment.commitment_id or None,
        "consumerId": commitment.consumer_id,
        "providerId": commitment.provider_id,
        "serviceId": commitment.service_id,
        "date": commitment.date.isoformat(),
        "startTime": commitment.start_time,
        "endTime": commitment.end_time,
        "endMinute": commitment.end_minute,
        "status": commitment.status,
        "totalAmount": commitment.total_amount,
        "notes": commitment.notes,
        "createdAt": stamp(commitment.created_at),
        "cancelledAt": stamp(commitment.cancelled_at),
        "cancellationReason": commitment.cancellation_reason,
        "completedAt": stamp(commitment.completed_at),
    }


class CommitmentApiClient:
    """Commitment store reached over REST."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """Initialize client with the store's base URL and request timeout."""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _call(self, method: str, path: str, identifier: str = "", **kwargs: Any) -> Any:
        return get_json(
            self.base_url, path, self.timeout, "Commitment", identifier,
            transport=self.transport, method=method, **kwargs
        )

    def _json_body(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceUnavailable(
                "POST /commitments returned invalid JSON", service=self.base_url
            ) from e

    def _decode(self, data: Any) -> Commitment:
        try:
            return commitment_from_json(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceUnavailable(f"Malformed commitment document: {e}", service=self.base_url) from e

    def find_active_commitments(
        self,
        consumer_id: Optional[str] = None,
        provider_id: Optional[str] = None,
        service_id: Optional[str] = None,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
        match_any: bool = False
    ) -> list[Commitment]:
        """Active commitments matching the filter."""
        params = {
            "status": "active",
            "consumerId": consumer_id,
            "providerId": provider_id,
            "serviceId": service_id,
            "date": on_date.isoformat() if on_date else None,
            "fromDate": from_date.isoformat() if from_date else None,
            "matchAny": "true" if match_any else None,
        }
        params = {k: v for k, v in params.items() if v is not None}
        data = self._call("GET", "/commitments", params=params)
        return [self._decode(item) for item in data.get("commitments", [])]

    def insert_commitment(self, commitment: Commitment) -> Commitment:
        """
        Create a commitment.

        A 409 answer means the store's own constraint rejected the slot and is
        surfaced as SlotConflict.
        """
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = client.post("/commitments", json=commitment_to_json(commitment))
        except httpx.HTTPError as e:
            raise ExternalServiceUnavailable(f"POST /commitments failed: {e}", service=self.base_url) from e

        if response.status_code == 409:
            body = self._json_body(response) if response.content else {}
            conflicting = body.get("conflictingIds", []) if isinstance(body, dict) else []
            raise SlotConflict(
                commitment.provider_id,
                commitment.date.isoformat(),
                commitment.start_time,
                list(conflicting),
            )
        if response.is_error:
            raise ExternalServiceUnavailable(
                f"POST /commitments returned {response.status_code}", service=self.base_url
            )
        stored = self._decode(self._json_body(response))
        logger.info("Stored commitment %s via %s", stored.commitment_id, self.base_url)
        return stored

    def get_commitment(self, commitment_id: str) -> Commitment:
        return self._decode(self._call("GET", f"/commitments/{commitment_id}", commitment_id))

    def update_commitment(self, commitment: Commitment) -> Commitment:
        data = self._call(
            "PUT",
            f"/commitments/{commitment.commitment_id}",
            commitment.commitment_id,
            json=commitment_to_json(commitment),
        )
        return self._decode(data)
