from __future__ import annotations

from typing import Protocol
from uuid import UUID

from roadside_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_recent(
        self, conversation_id: UUID, *, limit: int = 50,
    ) -> list[Message]:
        """Newest first."""
        ...

    async def get_many(self, message_ids: list[UUID]) -> list[Message]: ...


class MessageWriter(Protocol):
    async def append(self, message: Message) -> Message: ...

    async def delete_for_conversation(self, conversation_id: UUID) -> int: ...
