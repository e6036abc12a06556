from __future__ import annotations

from roadside_chat.domain.entities.assist_request import AssistRequest, Location, Vehicle
from roadside_chat.infrastructure.db.models.assist_request import AssistRequestModel


def model_to_entity(model: AssistRequestModel) -> AssistRequest:
    vehicle = model.vehicle or {}
    return AssistRequest(
        id=model.id,
        user_id=model.user_id,
        customer_name=model.customer_name,
        customer_email=model.customer_email,
        customer_phone=model.customer_phone,
        vehicle=Vehicle(
            model=vehicle.get("model", ""),
            plate=vehicle.get("plate", ""),
            notes=vehicle.get("notes", ""),
        ),
        location=Location(
            longitude=model.longitude,
            latitude=model.latitude,
            address=model.address,
            accuracy=model.accuracy,
        ),
        status=model.status,
        assigned_to=model.assigned_to,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_model(entity: AssistRequest) -> AssistRequestModel:
    return AssistRequestModel(
        id=entity.id,
        user_id=entity.user_id,
        customer_name=entity.customer_name,
        customer_email=entity.customer_email,
        customer_phone=entity.customer_phone,
        vehicle={
            "model": entity.vehicle.model,
            "plate": entity.vehicle.plate,
            "notes": entity.vehicle.notes,
        },
        longitude=entity.location.longitude,
        latitude=entity.location.latitude,
        address=entity.location.address,
        accuracy=entity.location.accuracy,
        status=entity.status,
        assigned_to=entity.assigned_to,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
