from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VehicleDTO:
    model: str = ""
    plate: str = ""
    notes: str = ""


@dataclass(frozen=True, slots=True)
class LocationDTO:
    lat: float | None = None
    lng: float | None = None
    address: str = ""
    accuracy: float | None = None
