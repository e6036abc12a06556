from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID


class ReadStateReader(Protocol):
    async def unread_counts(
        self, user_id: str, conversation_ids: list[UUID],
    ) -> dict[UUID, int]: ...

    async def unread_for_users(
        self, conversation_id: UUID, user_ids: list[str],
    ) -> dict[str, int]:
        """Unread counters of several members of one conversation."""
        ...


class ReadStateWriter(Protocol):
    async def ensure(self, conversation_id: UUID, user_ids: list[str]) -> None:
        """Create zero-unread rows for users that have none yet."""
        ...

    async def increment_unread(self, conversation_id: UUID, user_ids: list[str]) -> None:
        """Atomically add one unread message and clear the hidden flag."""
        ...

    async def mark_read(self, conversation_id: UUID, user_id: str, ts: datetime) -> None: ...

    async def delete_for_conversation(self, conversation_id: UUID) -> int: ...
