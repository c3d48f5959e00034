"""REST client for the consumer/provider profile service."""

import logging
from typing import Any, Optional

import httpx

from models.entities import ServiceDescriptor
from models.errors import ExternalServiceUnavailable, NotFound
from services.availability_model import parse_service_mask

logger = logging.getLogger(__name__)


def get_json(
    base_url: str,
    path: str,
    timeout: float,
    kind: str,
    identifier: str,
    transport: Optional[httpx.BaseTransport] = None,
    method: str = "GET",
    **kwargs: Any
) -> Any:
    """
    Perform one request and decode the JSON body.

    Raises:
        NotFound: the service answered 404
        ExternalServiceUnavailable: transport error, other error status or bad JSON
    """
    logger.debug("%s %s%s", method, base_url, path)
    try:
        with httpx.Client(base_url=base_url, timeout=timeout, transport=transport) as client:
            response = client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            raise NotFound(kind, identifier) from e
        raise ExternalServiceUnavailable(
            f"{method} {path} returned {e.response.status_code}", service=base_url
        ) from e
    except httpx.HTTPError as e:
        raise ExternalServiceUnavailable(f"{method} {path} failed: {e}", service=base_url) from e
    except ValueError as e:
        raise ExternalServiceUnavailable(f"{method} {path} returned invalid JSON", service=base_url) from e


class ProfileApiClient:
    """Client for the profile service REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize profile API client.

        Args:
            base_url: profile service root, e.g. https://api.example.com/api
            timeout: per-request timeout in seconds
            transport: optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _get(self, path: str, kind: str, identifier: str) -> Any:
        return get_json(self.base_url, path, self.timeout, kind, identifier, transport=self.transport)

    def get_consumer_availability(self, consumer_id: str) -> list[Any]:
        """Raw consumer slots; a consumer with no stored schedule has none."""
        data = self._get(f"/consumers/{consumer_id}/availability", "Consumer", consumer_id)
        return list(data.get("slots") or [])

    def get_provider_schedule(self, provider_id: str) -> list[Any]:
        data = self._get(f"/providers/{provider_id}/schedule", "Provider", provider_id)
        return list(data.get("schedule") or [])

    def get_service_descriptor(self, service_id: str) -> ServiceDescriptor:
        data = self._get(f"/services/{service_id}", "Service", service_id)
        try:
            return ServiceDescriptor(
                service_id=str(data.get("serviceId") or data.get("_id") or service_id),
                provider_id=str(data["providerId"]),
                name=str(data.get("name") or ""),
                duration_minutes=int(data.get("durationMinutes") or data["duration"]),
                slot_mask=parse_service_mask(data.get("slots") or []),
                price=float(data.get("price") or 0),
                category=str(data.get("category") or "General"),
                is_active=bool(data.get("isActive", True)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceUnavailable(
                f"Malformed service descriptor for {service_id}: {e}", service=self.base_url
            ) from e
