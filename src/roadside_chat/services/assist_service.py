from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any

from roadside_chat.application.dto.assist import LocationDTO, VehicleDTO
from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.exceptions import (
    AlreadyProcessedError,
    InvalidPayloadError,
    NotFoundError,
)
from roadside_chat.application.policies.permissions import assert_operator
from roadside_chat.application.ports.realtime import RealtimeHub
from roadside_chat.application.uow import UnitOfWork
from roadside_chat.config import settings
from roadside_chat.domain.entities.assist_request import AssistRequest, Location, Vehicle
from roadside_chat.domain.value_objects.enums import AssistStatus
from roadside_chat.services import chat_service

logger = logging.getLogger(__name__)

STATUS_UPDATES = frozenset(
    {AssistStatus.COMPLETED, AssistStatus.CANCELLED, AssistStatus.REJECTED}
)


def _finite_or_zero(value: float | None) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    return float(value)


async def create_assist_request(
    principal: Principal,
    vehicle: VehicleDTO,
    location: LocationDTO,
    uow: UnitOfWork,
) -> AssistRequest:
    """Persist a pending request with a snapshot of the requester's profile."""
    profile = await uow.profiles.get(principal.user_id)
    now = datetime.now(timezone.utc)
    request = AssistRequest(
        id=uuid.uuid4(),
        user_id=principal.user_id,
        customer_name=((profile.name if profile else "") or principal.name).strip(),
        customer_email=(profile.email if profile else "").strip(),
        customer_phone=(profile.phone if profile else "").strip(),
        vehicle=Vehicle(model=vehicle.model, plate=vehicle.plate, notes=vehicle.notes),
        location=Location(
            longitude=_finite_or_zero(location.lng),
            latitude=_finite_or_zero(location.lat),
            address=location.address or "",
            accuracy=location.accuracy or None,
        ),
        status=AssistStatus.PENDING.value,
        assigned_to=None,
        created_at=now,
        updated_at=now,
    )
    request = await uow.assist_requests_w.create(request)
    await uow.commit()
    logger.info("Assist request %s created by %s", request.id, principal.user_id)
    return request


def created_event(request: AssistRequest, principal: Principal) -> dict[str, Any]:
    return {
        "id": str(request.id),
        "user": {
            "id": request.user_id,
            "name": request.customer_name or principal.name,
            "avatar": principal.avatar,
        },
        "vehicle": {
            "model": request.vehicle.model,
            "plate": request.vehicle.plate,
            "notes": request.vehicle.notes,
        },
        "location": {
            "lat": request.location.latitude,
            "lng": request.location.longitude,
            "address": request.location.address,
        },
        "createdAt": request.created_at.isoformat(),
    }


async def announce_assist_request(
    request: AssistRequest,
    principal: Principal,
    hub: RealtimeHub,
) -> None:
    await hub.emit_to_room(
        settings.OPERATORS_ROOM,
        "assist:created",
        {"success": True, "data": created_event(request, principal)},
    )


def join_operators(principal: Principal, connection_id: str, hub: RealtimeHub) -> None:
    if settings.ASSIST_REQUIRE_OPERATOR_ROLE:
        assert_operator(principal)
    hub.join(connection_id, settings.OPERATORS_ROOM)


async def accept_assist_request(
    principal: Principal,
    request_id: uuid.UUID,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> AssistRequest:
    """Claim a pending request for the calling operator.

    The status transition is a single conditional update, so of several
    concurrent accepts exactly one wins; the rest get AlreadyProcessed.
    """
    if settings.ASSIST_REQUIRE_OPERATOR_ROLE:
        assert_operator(principal)

    accepted = await uow.assist_requests_w.accept_if_pending(
        request_id, principal.user_id, datetime.now(timezone.utc),
    )
    if accepted is None:
        existing = await uow.assist_requests.get_by_id(request_id)
        if existing is None:
            raise NotFoundError("Not found")
        if existing.user_id == principal.user_id and existing.status == AssistStatus.PENDING:
            raise InvalidPayloadError("Cannot accept your own request")
        raise AlreadyProcessedError("Already processed")
    await uow.commit()
    logger.info("Assist request %s accepted by %s", request_id, principal.user_id)

    await chat_service.ensure_direct_conversation(
        accepted.user_id, principal.user_id, accepted.user_id, uow, hub,
    )
    await hub.emit_to_users(
        [accepted.user_id],
        "assist:approved",
        {"success": True, "data": {"id": str(accepted.id)}},
    )
    return accepted


async def update_assist_status(
    principal: Principal,
    request_id: uuid.UUID,
    status: str,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> AssistRequest:
    if status not in STATUS_UPDATES:
        raise InvalidPayloadError("Unsupported status")

    updated = await uow.assist_requests_w.set_status(
        request_id, status, datetime.now(timezone.utc),
    )
    if updated is None:
        raise NotFoundError("Not found")
    await uow.commit()
    logger.info("Assist request %s set to %s by %s", request_id, status, principal.user_id)

    await hub.emit_to_users(
        [updated.user_id],
        "assist:status",
        {"success": True, "data": {"id": str(updated.id), "status": status}},
    )
    return updated


async def list_pending(
    uow: UnitOfWork,
    *,
    limit: int | None = None,
) -> list[AssistRequest]:
    return await uow.assist_requests.list_pending(limit=limit or settings.ASSIST_PENDING_LIMIT)
