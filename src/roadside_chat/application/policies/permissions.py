from __future__ import annotations

from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.exceptions import ForbiddenError, NotFoundError
from roadside_chat.domain.entities.conversation import Conversation


def assert_conversation_access(
    user_id: str,
    conversation: Conversation | None,
) -> Conversation:
    """Raise if conversation doesn't exist or the user is not a participant."""
    if conversation is None:
        raise NotFoundError("Conversation not found")
    if not conversation.has_participant(user_id):
        raise ForbiddenError("Not a participant of this conversation")
    return conversation


def assert_operator(principal: Principal) -> None:
    if not principal.is_operator:
        raise ForbiddenError("Operator access required")
