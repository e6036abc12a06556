from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from roadside_chat.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: UUID) -> Conversation | None: ...

    async def get_direct(self, direct_key: str) -> Conversation | None:
        """Find the direct conversation for an unordered pair key."""
        ...

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        """Conversations the user takes part in, most recent activity first."""
        ...

    async def list_ids_for_user(self, user_id: str) -> list[UUID]: ...


class ConversationWriter(Protocol):
    async def create(self, conversation: Conversation) -> Conversation: ...

    async def create_direct_if_absent(
        self, conversation: Conversation,
    ) -> tuple[Conversation, bool]:
        """Insert a direct conversation unless its pair already has one.

        Returns (conversation, created). On conflict the existing row is returned.
        """
        ...

    async def touch_last_message(
        self, conversation_id: UUID, message_id: UUID, ts: datetime,
    ) -> None: ...

    async def delete(self, conversation_id: UUID) -> None: ...
