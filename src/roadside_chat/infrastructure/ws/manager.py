"""In-process WebSocket connection registry with rooms."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from fastapi import WebSocket

from roadside_chat.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LiveConnection:
    connection_id: str
    user_id: str
    socket: WebSocket
    display_name: str = ""
    avatar: str = ""
    rooms: set[str] = field(default_factory=set)


class ConnectionManager:
    """Tracks live connections per user and room membership per connection.

    Every device of a user is a separate connection; lookups are indexed by
    user id and by room so fan-out never scans the whole registry.
    """

    def __init__(self) -> None:
        self._connections: dict[str, LiveConnection] = {}
        self._by_user: dict[str, set[str]] = {}
        self._rooms: dict[str, set[str]] = {}

    def register(
        self,
        connection_id: str,
        user_id: str,
        socket: WebSocket,
        *,
        display_name: str = "",
        avatar: str = "",
    ) -> LiveConnection:
        conn = LiveConnection(
            connection_id=connection_id,
            user_id=user_id,
            socket=socket,
            display_name=display_name,
            avatar=avatar,
        )
        self._connections[connection_id] = conn
        self._by_user.setdefault(user_id, set()).add(connection_id)
        logger.debug(
            "WS connected: %s user=%s (total=%d)",
            connection_id, user_id, len(self._connections),
        )
        return conn

    def unregister(self, connection_id: str) -> None:
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return
        ids = self._by_user.get(conn.user_id)
        if ids:
            ids.discard(connection_id)
            if not ids:
                del self._by_user[conn.user_id]
        for room in conn.rooms:
            members = self._rooms.get(room)
            if members:
                members.discard(connection_id)
                if not members:
                    del self._rooms[room]
        logger.debug("WS disconnected: %s user=%s", connection_id, conn.user_id)

    def get(self, connection_id: str) -> LiveConnection | None:
        return self._connections.get(connection_id)

    def find_connections_for_users(self, user_ids: Iterable[str]) -> list[str]:
        found: list[str] = []
        for uid in dict.fromkeys(user_ids):
            found.extend(self._by_user.get(uid, ()))
        return found

    def is_user_online(self, user_id: str) -> bool:
        return bool(self._by_user.get(user_id))

    def room_members(self, room: str) -> set[str]:
        return set(self._rooms.get(room, ()))

    # -- rooms --------------------------------------------------------------

    def join(self, connection_id: str, room: str) -> None:
        conn = self._connections.get(connection_id)
        if conn is None:
            return
        conn.rooms.add(room)
        self._rooms.setdefault(room, set()).add(connection_id)

    def leave(self, connection_id: str, room: str) -> None:
        conn = self._connections.get(connection_id)
        if conn is not None:
            conn.rooms.discard(room)
        members = self._rooms.get(room)
        if members:
            members.discard(connection_id)
            if not members:
                del self._rooms[room]

    def join_users(self, user_ids: Iterable[str], room: str) -> None:
        for cid in self.find_connections_for_users(user_ids):
            self.join(cid, room)

    def leave_users(self, user_ids: Iterable[str], room: str) -> None:
        for cid in self.find_connections_for_users(user_ids):
            self.leave(cid, room)

    # -- emit ---------------------------------------------------------------

    async def emit_to_connections(
        self,
        connection_ids: Iterable[str],
        event_type: str,
        data: dict[str, Any],
    ) -> None:
        raw = WsOutbound(type=event_type, data=data).model_dump_json()
        dead: list[str] = []
        for cid in list(dict.fromkeys(connection_ids)):
            conn = self._connections.get(cid)
            if conn is None:
                continue
            try:
                await conn.socket.send_text(raw)
            except Exception:
                logger.warning("WS send failed on %s, dropping connection", cid, exc_info=True)
                dead.append(cid)
        for cid in dead:
            self.unregister(cid)

    async def emit_to_users(
        self,
        user_ids: Iterable[str],
        event_type: str,
        data: dict[str, Any],
    ) -> None:
        await self.emit_to_connections(
            self.find_connections_for_users(user_ids), event_type, data,
        )

    async def emit_to_room(
        self,
        room: str,
        event_type: str,
        data: dict[str, Any],
    ) -> None:
        await self.emit_to_connections(self.room_members(room), event_type, data)
