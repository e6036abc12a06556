"""Call signaling relay. Stateless: nothing is persisted or queued."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.exceptions import InvalidPayloadError
from roadside_chat.application.policies.permissions import assert_conversation_access
from roadside_chat.application.ports.realtime import RealtimeHub
from roadside_chat.application.uow import UnitOfWork
from roadside_chat.domain.value_objects.enums import CallAction, CallKind, ConversationType

logger = logging.getLogger(__name__)

SIGNAL_EVENTS: dict[CallAction, str] = {
    CallAction.ACCEPT: "call:accepted",
    CallAction.REJECT: "call:rejected",
    CallAction.CANCEL: "call:cancelled",
}


def epoch_millis(ts: datetime) -> int:
    return int(ts.timestamp() * 1000)


def _caller_card(principal: Principal, caller: dict[str, Any] | None) -> dict[str, Any]:
    """Display fields may come from the client; the id is always the caller's own."""
    caller = caller or {}
    return {
        "id": principal.user_id,
        "name": caller.get("name") or principal.name,
        "avatar": caller.get("avatar") or principal.avatar,
    }


async def invite(
    principal: Principal,
    conversation_id: uuid.UUID | None,
    channel: str,
    uow: UnitOfWork,
    hub: RealtimeHub,
    *,
    kind: CallKind = CallKind.VIDEO,
    caller: dict[str, Any] | None = None,
) -> int:
    """Ring every other participant's devices. Returns the number of users targeted."""
    if not principal.user_id or not conversation_id or not channel:
        raise InvalidPayloadError("Invalid payload")

    conversation = assert_conversation_access(
        principal.user_id, await uow.conversations.get_by_id(conversation_id),
    )

    targets = conversation.others(principal.user_id)
    payload: dict[str, Any] = {
        "conversationId": str(conversation_id),
        "channel": channel,
        "kind": kind.value,
        "from": _caller_card(principal, caller),
        "ts": epoch_millis(datetime.now(timezone.utc)),
    }
    if conversation.type == ConversationType.GROUP:
        payload["name"] = conversation.name or "Group"

    await hub.emit_to_users(targets, "call:incoming", {"success": True, "data": payload})
    return len(targets)


async def relay_signal(
    action: CallAction,
    principal: Principal,
    conversation_id: uuid.UUID | None,
    channel: str,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> bool:
    """Forward accept/reject/cancel to the other participants.

    Bad payloads and unknown conversations are dropped; the caller gets no reply.
    """
    if not principal.user_id or not conversation_id or not channel:
        logger.info("%s dropped: invalid payload from %s", action.value, principal.user_id)
        return False

    conversation = await uow.conversations.get_by_id(conversation_id)
    if conversation is None:
        logger.info("%s dropped: conversation %s not found", action.value, conversation_id)
        return False
    if not conversation.has_participant(principal.user_id):
        logger.info(
            "%s dropped: %s is not in conversation %s", action.value, principal.user_id, conversation_id,
        )
        return False

    await hub.emit_to_users(
        conversation.others(principal.user_id),
        SIGNAL_EVENTS[action],
        {
            "success": True,
            "data": {
                "conversationId": str(conversation_id),
                "channel": channel,
                "by": principal.user_id,
                "ts": epoch_millis(datetime.now(timezone.utc)),
            },
        },
    )
    return True
