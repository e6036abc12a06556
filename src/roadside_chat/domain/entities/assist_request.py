from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Vehicle:
    model: str = ""
    plate: str = ""
    notes: str = ""


@dataclass(frozen=True, slots=True)
class Location:
    longitude: float
    latitude: float
    address: str = ""
    accuracy: float | None = None

    @property
    def coordinates(self) -> tuple[float, float]:
        """GeoJSON order: [lng, lat]."""
        return (self.longitude, self.latitude)


@dataclass(frozen=True, slots=True)
class AssistRequest:
    id: UUID
    user_id: str
    # Profile snapshot taken at creation; never synced afterwards.
    customer_name: str
    customer_email: str
    customer_phone: str
    vehicle: Vehicle
    location: Location
    status: str
    assigned_to: str | None
    created_at: datetime
    updated_at: datetime
