from __future__ import annotations

from typing import Any, Iterable, Protocol
from uuid import UUID


def conversation_room(conversation_id: UUID) -> str:
    return f"conversation:{conversation_id}"


class RealtimeHub(Protocol):
    """Registry of live connections plus room membership and fan-out."""

    def find_connections_for_users(self, user_ids: Iterable[str]) -> list[str]: ...

    def is_user_online(self, user_id: str) -> bool: ...

    def join(self, connection_id: str, room: str) -> None: ...

    def leave(self, connection_id: str, room: str) -> None: ...

    def join_users(self, user_ids: Iterable[str], room: str) -> None: ...

    def leave_users(self, user_ids: Iterable[str], room: str) -> None: ...

    async def emit_to_connections(
        self, connection_ids: Iterable[str], event_type: str, data: dict[str, Any],
    ) -> None: ...

    async def emit_to_users(
        self, user_ids: Iterable[str], event_type: str, data: dict[str, Any],
    ) -> None: ...

    async def emit_to_room(
        self, room: str, event_type: str, data: dict[str, Any],
    ) -> None: ...
