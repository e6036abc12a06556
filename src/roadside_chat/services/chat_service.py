from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.dto.views import ConversationView, success
from roadside_chat.application.exceptions import InvalidPayloadError
from roadside_chat.application.policies.permissions import assert_conversation_access
from roadside_chat.application.ports.realtime import RealtimeHub, conversation_room
from roadside_chat.application.uow import UnitOfWork
from roadside_chat.domain.entities.conversation import Conversation
from roadside_chat.domain.value_objects.enums import ConversationType
from roadside_chat.services.presenters import present_conversation, present_conversations

logger = logging.getLogger(__name__)


async def list_conversations(
    principal: Principal,
    uow: UnitOfWork,
) -> list[ConversationView]:
    conversations = await uow.conversations.list_for_user(principal.user_id)
    return await present_conversations(conversations, principal.user_id, uow)


async def create_conversation(
    principal: Principal,
    conv_type: ConversationType,
    participants: list[str],
    uow: UnitOfWork,
    hub: RealtimeHub,
    *,
    name: str = "",
    avatar: str = "",
) -> tuple[ConversationView, bool]:
    """Create a conversation, or return the existing direct one for the pair.

    Returns (view for the requester, created). New conversations are
    announced to every participant; an existing direct conversation is
    only returned to the requester.
    """
    members = list(dict.fromkeys([principal.user_id, *participants]))
    if conv_type == ConversationType.DIRECT and len(members) != 2:
        raise InvalidPayloadError("A direct conversation needs exactly 2 participants")
    if conv_type == ConversationType.GROUP and len(members) < 2:
        raise InvalidPayloadError("A group conversation needs at least 2 participants")

    conversation, created = await _persist(
        _build(conv_type, members, principal.user_id, name=name, avatar=avatar), uow,
    )
    if not created:
        view = await present_conversation(conversation, principal.user_id, uow, is_new=False)
        return view, False

    view = await _announce(conversation, uow, hub)
    return view, True


async def ensure_direct_conversation(
    user_a: str,
    user_b: str,
    created_by: str,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> tuple[Conversation, bool]:
    """Idempotently materialize the direct conversation between two users."""
    if not user_a or not user_b or user_a == user_b:
        raise InvalidPayloadError("A direct conversation needs two distinct users")

    conversation, created = await _persist(
        _build(ConversationType.DIRECT, [user_a, user_b], created_by), uow,
    )
    if created:
        await _announce(conversation, uow, hub)
    return conversation, created


async def delete_conversation(
    principal: Principal,
    conversation_id: uuid.UUID,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> None:
    conversation = assert_conversation_access(
        principal.user_id, await uow.conversations.get_by_id(conversation_id),
    )

    removed = await uow.messages_w.delete_for_conversation(conversation_id)
    await uow.read_states_w.delete_for_conversation(conversation_id)
    await uow.conversations_w.delete(conversation_id)
    await uow.commit()
    logger.info(
        "Conversation %s deleted by %s (%d messages)",
        conversation_id, principal.user_id, removed,
    )

    members = list(conversation.participant_ids)
    hub.leave_users(members, conversation_room(conversation_id))
    await hub.emit_to_users(
        members,
        "conversationDeleted",
        {"success": True, "conversationId": str(conversation_id)},
    )


async def join_user_rooms(
    connection_id: str,
    user_id: str,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> int:
    """Join a fresh connection to the room of every conversation its user is in."""
    conversation_ids = await uow.conversations.list_ids_for_user(user_id)
    for cid in conversation_ids:
        hub.join(connection_id, conversation_room(cid))
    return len(conversation_ids)


def _build(
    conv_type: ConversationType,
    members: list[str],
    created_by: str,
    *,
    name: str = "",
    avatar: str = "",
) -> Conversation:
    now = datetime.now(timezone.utc)
    return Conversation(
        id=uuid.uuid4(),
        type=conv_type.value,
        participant_ids=tuple(members),
        name=name,
        avatar=avatar,
        last_message_id=None,
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )


async def _persist(
    conversation: Conversation,
    uow: UnitOfWork,
) -> tuple[Conversation, bool]:
    if conversation.type == ConversationType.DIRECT:
        existing = await uow.conversations.get_direct(conversation.direct_key or "")
        if existing is not None:
            return existing, False
        conversation, created = await uow.conversations_w.create_direct_if_absent(conversation)
    else:
        await uow.conversations_w.create(conversation)
        created = True

    if created:
        await uow.read_states_w.ensure(conversation.id, list(conversation.participant_ids))
        await uow.commit()
        logger.info(
            "Conversation %s created (%s, %d participants)",
            conversation.id, conversation.type, len(conversation.participant_ids),
        )
    return conversation, created


async def _announce(
    conversation: Conversation,
    uow: UnitOfWork,
    hub: RealtimeHub,
) -> ConversationView:
    members = list(conversation.participant_ids)
    hub.join_users(members, conversation_room(conversation.id))
    # Every participant starts at zero unread, so one view fits all of them.
    view = await present_conversation(
        conversation, conversation.created_by or members[0], uow, is_new=True,
    )
    await hub.emit_to_users(members, "newConversation", success(view))
    return view
