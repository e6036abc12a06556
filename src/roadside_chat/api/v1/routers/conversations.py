from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from roadside_chat.api.deps import CurrentPrincipal, UoWDep
from roadside_chat.application.dto.views import ConversationView, MessageView
from roadside_chat.services import chat_service, message_service

router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationView])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[ConversationView]:
    return await chat_service.list_conversations(principal, uow)


@router.get("/{conversation_id}/messages", response_model=list[MessageView])
async def list_messages(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[MessageView]:
    return await message_service.get_messages(principal, conversation_id, uow)
