"""Turn persisted entities into the client views, with profile display fields."""
from __future__ import annotations

from uuid import UUID

from roadside_chat.application.dto.views import ConversationView, MessageView, UserSummary
from roadside_chat.application.uow import UnitOfWork
from roadside_chat.domain.entities.conversation import Conversation
from roadside_chat.domain.entities.message import Message
from roadside_chat.domain.entities.user import UserProfile


def summarize(user_id: str, profiles: dict[str, UserProfile]) -> UserSummary:
    profile = profiles.get(user_id)
    if profile is None:
        return UserSummary(id=user_id)
    return UserSummary(
        id=profile.id,
        name=profile.name,
        avatar=profile.avatar,
        email=profile.email,
    )


def message_view(message: Message, profiles: dict[str, UserProfile]) -> MessageView:
    return MessageView(
        id=message.id,
        conversation_id=message.conversation_id,
        sender=summarize(message.sender_id, profiles),
        content=message.content,
        attachment=message.attachment,
        created_at=message.created_at,
    )


async def present_messages(messages: list[Message], uow: UnitOfWork) -> list[MessageView]:
    profiles = await uow.profiles.get_many([m.sender_id for m in messages])
    return [message_view(m, profiles) for m in messages]


async def present_conversations(
    conversations: list[Conversation],
    viewer_id: str,
    uow: UnitOfWork,
    *,
    is_new: bool | None = None,
) -> list[ConversationView]:
    """Populate participants, last message and the viewer's own unread counter."""
    if not conversations:
        return []

    last_messages, profiles = await _load_context(conversations, uow)
    unread = await uow.read_states.unread_counts(viewer_id, [c.id for c in conversations])
    return [
        _conversation_view(conv, last_messages, profiles, unread.get(conv.id, 0), is_new)
        for conv in conversations
    ]


async def present_conversation(
    conversation: Conversation,
    viewer_id: str,
    uow: UnitOfWork,
    *,
    is_new: bool | None = None,
) -> ConversationView:
    views = await present_conversations([conversation], viewer_id, uow, is_new=is_new)
    return views[0]


async def present_conversation_per_viewer(
    conversation: Conversation,
    viewer_ids: list[str],
    uow: UnitOfWork,
) -> dict[str, ConversationView]:
    """One view per viewer, each with that viewer's unread counter.

    Every read happens up front, so building and sending the views never
    touches the session again.
    """
    if not viewer_ids:
        return {}
    last_messages, profiles = await _load_context([conversation], uow)
    unread = await uow.read_states.unread_for_users(conversation.id, viewer_ids)
    return {
        uid: _conversation_view(conversation, last_messages, profiles, unread.get(uid, 0), None)
        for uid in viewer_ids
    }


async def _load_context(
    conversations: list[Conversation],
    uow: UnitOfWork,
) -> tuple[dict[UUID, Message], dict[str, UserProfile]]:
    last_ids = [c.last_message_id for c in conversations if c.last_message_id]
    last_messages = {m.id: m for m in await uow.messages.get_many(last_ids)}

    user_ids = {uid for c in conversations for uid in c.participant_ids}
    user_ids.update(m.sender_id for m in last_messages.values())
    profiles = await uow.profiles.get_many(sorted(user_ids))
    return last_messages, profiles


def _conversation_view(
    conv: Conversation,
    last_messages: dict[UUID, Message],
    profiles: dict[str, UserProfile],
    unread_count: int,
    is_new: bool | None,
) -> ConversationView:
    last = last_messages.get(conv.last_message_id) if conv.last_message_id else None
    return ConversationView(
        id=conv.id,
        type=conv.type,
        name=conv.name,
        avatar=conv.avatar,
        participants=[summarize(uid, profiles) for uid in conv.participant_ids],
        last_message=message_view(last, profiles) if last else None,
        created_by=conv.created_by,
        created_at=conv.created_at,
        updated_at=conv.updated_at,
        unread_count=unread_count,
        is_new=is_new,
    )
