"""Mock profile service with synthetic consumers, providers and services."""

import json
from typing import Any, Optional

from models.entities import ConsumerProfile, ProviderProfile, ProviderScheduleRow, ServiceDescriptor
from models.errors import NotFound
from services.availability_model import parse_service_mask


def _slot(day: int, start: str, end: str) -> str:
    """Consumer slots are stored as JSON strings."""
    return json.dumps({"dayOfWeek": day, "startTime": start, "endTime": end})


def _weekdays(start: str, end: str, days=(1, 2, 3, 4, 5)) -> list[ProviderScheduleRow]:
    return [
        ProviderScheduleRow(day_of_week=day, is_available=day in days, start_time=start, end_time=end)
        for day in range(7)
    ]


class ProfileStoreMock:
    """In-memory profile service."""

    def __init__(self, seed: bool = True):
        """Initialize, optionally with synthetic data."""
        self._consumers: dict[str, ConsumerProfile] = {}
        self._providers: dict[str, ProviderProfile] = {}
        self._services: dict[str, ServiceDescriptor] = {}
        if seed:
            for consumer in self._generate_consumers():
                self.add_consumer(consumer)
            for provider in self._generate_providers():
                self.add_provider(provider)
            for service in self._generate_services():
                self.add_service(service)

    def _generate_consumers(self) -> list[ConsumerProfile]:
        """Generate synthetic consumers."""
        return [
            ConsumerProfile(
                consumer_id="cons_001",
                full_name="Maya Robinson",
                email="maya.robinson@example.com",
                slots=[
                    _slot(1, "07:00", "09:00"),
                    _slot(1, "17:00", "20:00"),
                    _slot(3, "17:00", "20:00"),
                    _slot(6, "10:00", "14:00"),
                ]
            ),
            ConsumerProfile(
                consumer_id="cons_002",
                full_name="Daniel Okafor",
                email="daniel.okafor@example.com",
                slots=[
                    _slot(2, "12:00", "14:00"),
                    _slot(4, "12:00", "14:00"),
                    _slot(5, "09:00", "11:30"),
                ]
            ),
            ConsumerProfile(
                consumer_id="cons_003",
                full_name="Sofia Marques",
                email="sofia.marques@example.com",
                slots=[_slot(0, "10:00", "12:00")]
            ),
        ]

    def _generate_providers(self) -> list[ProviderProfile]:
        """Generate synthetic providers."""
        return [
            ProviderProfile(
                provider_id="prov_001",
                business_name="Northside Physio",
                schedule=_weekdays("08:00", "18:00"),
            ),
            ProviderProfile(
                provider_id="prov_002",
                business_name="Green Leaf Tutoring",
                schedule=_weekdays("15:00", "21:00", days=(1, 3, 6)),
            ),
            ProviderProfile(
                provider_id="prov_003",
                business_name="Harbor Dental",
                schedule=[
                    ProviderScheduleRow(
                        day_of_week=day,
                        is_available=day in (2, 4),
                        time_slots=[
                            {"startTime": "09:00", "endTime": "12:00"},
                            {"startTime": "13:00", "endTime": "17:00"},
                        ],
                    )
                    for day in range(7)
                ],
            ),
        ]

    def _generate_services(self) -> list[ServiceDescriptor]:
        """Generate synthetic services."""
        return [
            ServiceDescriptor(
                service_id="svc_001",
                provider_id="prov_001",
                name="Sports Massage",
                duration_minutes=60,
                price=70.0,
                category="Health & Wellness",
            ),
            ServiceDescriptor(
                service_id="svc_002",
                provider_id="prov_001",
                name="Evening Rehab Session",
                duration_minutes=45,
                slot_mask=parse_service_mask([_slot(1, "16:00", "18:00"), _slot(3, "16:00", "18:00")]),
                price=55.0,
                category="Health & Wellness",
            ),
            ServiceDescriptor(
                service_id="svc_003",
                provider_id="prov_002",
                name="Math Tutoring",
                duration_minutes=60,
                price=40.0,
                category="Education",
            ),
            ServiceDescriptor(
                service_id="svc_004",
                provider_id="prov_003",
                name="Dental Cleaning",
                duration_minutes=30,
                price=90.0,
                category="Health & Wellness",
            ),
        ]

    def add_consumer(self, consumer: ConsumerProfile) -> None:
        self._consumers[consumer.consumer_id] = consumer

    def add_provider(self, provider: ProviderProfile) -> None:
        self._providers[provider.provider_id] = provider

    def add_service(self, service: ServiceDescriptor) -> None:
        self._services[service.service_id] = service

    def get_consumer(self, consumer_id: str) -> Optional[ConsumerProfile]:
        """Get a consumer by ID."""
        return self._consumers.get(consumer_id)

    def list_consumers(self) -> list[ConsumerProfile]:
        return list(self._consumers.values())

    def get_provider(self, provider_id: str) -> Optional[ProviderProfile]:
        return self._providers.get(provider_id)

    def list_services(self) -> list[ServiceDescriptor]:
        return list(self._services.values())

    def get_consumer_availability(self, consumer_id: str) -> list[Any]:
        """Raw availability slots; a consumer without a schedule has none."""
        consumer = self._consumers.get(consumer_id)
        if consumer is None:
            raise NotFound("Consumer", consumer_id)
        return list(consumer.slots)

    def get_provider_schedule(self, provider_id: str) -> list[Any]:
        provider = self._providers.get(provider_id)
        if provider is None:
            raise NotFound("Provider", provider_id)
        return list(provider.schedule)

    def get_service_descriptor(self, service_id: str) -> ServiceDescriptor:
        service = self._services.get(service_id)
        if service is None:
            raise NotFound("Service", service_id)
        return service
