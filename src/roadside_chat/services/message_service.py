from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.dto.views import MessageView, UserSummary, success
from roadside_chat.application.exceptions import InvalidPayloadError
from roadside_chat.application.policies.permissions import assert_conversation_access
from roadside_chat.application.ports.realtime import RealtimeHub, conversation_room
from roadside_chat.application.uow import UnitOfWork
from roadside_chat.config import settings
from roadside_chat.domain.entities.conversation import Conversation
from roadside_chat.domain.entities.message import Message
from roadside_chat.domain.entities.user import UserProfile
from roadside_chat.services.presenters import (
    message_view,
    present_conversation,
    present_conversation_per_viewer,
    present_messages,
)

logger = logging.getLogger(__name__)

PUSH_MESSAGE_EVENT = "push.message"


def push_preview(content: str | None, attachment: str | None, max_chars: int = 160) -> str:
    if attachment:
        return "Sent a photo"
    if content:
        if len(content) > max_chars:
            return content[: max_chars - 3] + "..."
        return content
    return "New message"


async def send_message(
    principal: Principal,
    conversation_id: uuid.UUID | None,
    content: str | None,
    attachment: str | None,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> MessageView:
    """Persist a message and fan it out.

    The message, last-message pointer, unread increments and push outbox
    record are committed together; realtime emits happen after commit.
    """
    if not principal.user_id or not conversation_id:
        raise InvalidPayloadError("Invalid payload")
    if not content and not attachment:
        raise InvalidPayloadError("Message needs content or an attachment")

    conversation = assert_conversation_access(
        principal.user_id, await uow.conversations.get_by_id(conversation_id),
    )

    message = await uow.messages_w.append(
        Message(
            id=uuid.uuid4(),
            conversation_id=conversation.id,
            sender_id=principal.user_id,
            content=content,
            attachment=attachment,
            created_at=datetime.now(timezone.utc),
        )
    )
    await uow.conversations_w.touch_last_message(conversation.id, message.id, message.created_at)

    recipients = conversation.others(principal.user_id)
    await uow.read_states_w.increment_unread(conversation.id, recipients)

    profiles = await uow.profiles.get_many(list(conversation.participant_ids))
    tokens = [
        profiles[uid].push_token
        for uid in recipients
        if uid in profiles and profiles[uid].push_token
    ]
    if tokens:
        await uow.outbox.add(
            PUSH_MESSAGE_EVENT,
            _push_payload(tokens, principal, conversation, message, profiles),
        )
    await uow.commit()

    view = message_view(message, profiles)
    if principal.user_id not in profiles:
        view.sender = UserSummary(id=principal.user_id, name=principal.name, avatar=principal.avatar)

    room = conversation_room(conversation.id)
    hub.join_users(conversation.participant_ids, room)
    await hub.emit_to_room(room, "newMessage", success(view))

    online = [uid for uid in recipients if hub.is_user_online(uid)]
    await hub.emit_to_users(
        [principal.user_id],
        "messageDelivered",
        {
            "success": True,
            "conversationId": str(conversation.id),
            "deliveredTo": [profiles[uid].name for uid in online if uid in profiles and profiles[uid].name],
            "deliveredToIds": online,
        },
    )

    await _emit_conversation_updates(conversation, uow, hub)
    return view


async def _emit_conversation_updates(
    conversation: Conversation,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> None:
    """Send each online participant the conversation with their own unread count."""
    refreshed = await uow.conversations.get_by_id(conversation.id) or conversation
    online = [uid for uid in refreshed.participant_ids if hub.is_user_online(uid)]
    views = await present_conversation_per_viewer(refreshed, online, uow)
    for uid, view in views.items():
        try:
            await hub.emit_to_users([uid], "conversationUpdated", success(view))
        except Exception:
            logger.exception(
                "conversationUpdated failed for user %s in %s", uid, conversation.id,
            )


def _push_payload(
    tokens: list[str],
    principal: Principal,
    conversation: Conversation,
    message: Message,
    profiles: dict[str, UserProfile],
) -> dict[str, Any]:
    sender = profiles.get(principal.user_id)
    sender_name = (sender.name if sender else "") or principal.name or "Someone"
    sender_avatar = (sender.avatar if sender else "") or principal.avatar
    return {
        "tokens": tokens,
        "title": sender_name,
        "body": push_preview(message.content, message.attachment, settings.PUSH_PREVIEW_MAX_CHARS),
        "data": {
            "conversationId": str(conversation.id),
            "name": sender_name,
            "avatar": sender_avatar,
            "type": conversation.type,
            "participants": [
                {
                    "id": uid,
                    "name": profiles[uid].name if uid in profiles else "",
                    "avatar": profiles[uid].avatar if uid in profiles else "",
                }
                for uid in conversation.participant_ids
            ],
        },
    }


async def mark_as_read(
    principal: Principal,
    conversation_id: uuid.UUID,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> None:
    conversation = assert_conversation_access(
        principal.user_id, await uow.conversations.get_by_id(conversation_id),
    )
    await uow.read_states_w.mark_read(conversation.id, principal.user_id, datetime.now(timezone.utc))
    await uow.commit()

    view = await present_conversation(conversation, principal.user_id, uow)
    view.unread_count = 0
    await hub.emit_to_users([principal.user_id], "conversationUpdated", success(view))


async def get_messages(
    principal: Principal,
    conversation_id: uuid.UUID,
    uow: UnitOfWork,
    *,
    limit: int | None = None,
) -> list[MessageView]:
    """Most recent messages, newest first."""
    assert_conversation_access(
        principal.user_id, await uow.conversations.get_by_id(conversation_id),
    )
    messages = await uow.messages.list_recent(
        conversation_id, limit=limit or settings.MESSAGES_PAGE_SIZE,
    )
    return await present_messages(messages, uow)
