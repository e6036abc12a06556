from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from roadside_chat.api.deps import CurrentOperator, HubDep, UoWDep
from roadside_chat.api.v1.schemas.assist import AssistRequestResponse
from roadside_chat.services import assist_service

router = APIRouter(prefix="/api/v1/assist", tags=["assist"])


@router.get("/pending", response_model=list[AssistRequestResponse])
async def list_pending(
    principal: CurrentOperator,
    uow: UoWDep,
    limit: int = Query(50, ge=1, le=200),
) -> list[AssistRequestResponse]:
    requests = await assist_service.list_pending(uow, limit=limit)
    return [AssistRequestResponse.from_entity(r) for r in requests]


@router.post("/{request_id}/accept", response_model=AssistRequestResponse)
async def accept_request(
    request_id: UUID,
    principal: CurrentOperator,
    uow: UoWDep,
    hub: HubDep,
) -> AssistRequestResponse:
    accepted = await assist_service.accept_assist_request(principal, request_id, uow, hub)
    return AssistRequestResponse.from_entity(accepted)
