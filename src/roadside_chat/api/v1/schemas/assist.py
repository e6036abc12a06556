from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from roadside_chat.domain.entities.assist_request import AssistRequest


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VehicleSchema(_Schema):
    model: str = ""
    plate: str = ""
    notes: str = ""


class LocationSchema(_Schema):
    coordinates: tuple[float, float]
    address: str = ""
    accuracy: float | None = None


class AssistRequestResponse(_Schema):
    id: UUID
    user_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    vehicle: VehicleSchema
    location: LocationSchema
    status: str
    assigned_to: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: AssistRequest) -> AssistRequestResponse:
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            customer_name=entity.customer_name,
            customer_email=entity.customer_email,
            customer_phone=entity.customer_phone,
            vehicle=VehicleSchema(
                model=entity.vehicle.model,
                plate=entity.vehicle.plate,
                notes=entity.vehicle.notes,
            ),
            location=LocationSchema(
                coordinates=entity.location.coordinates,
                address=entity.location.address,
                accuracy=entity.location.accuracy,
            ),
            status=entity.status,
            assigned_to=entity.assigned_to,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
