"""Client-facing projections of conversations and messages.

Serialized with camelCase aliases both on the websocket and over REST.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _View(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserSummary(_View):
    id: str
    name: str = ""
    avatar: str = ""
    email: str = ""


class MessageView(_View):
    id: UUID
    conversation_id: UUID
    sender: UserSummary
    content: str | None
    attachment: str | None
    created_at: datetime


class ConversationView(_View):
    id: UUID
    type: str
    name: str
    avatar: str
    participants: list[UserSummary]
    last_message: MessageView | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
    unread_count: int = 0
    is_new: bool | None = None


def to_payload(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    return value


def success(data: Any = None, **extra: Any) -> dict[str, Any]:
    """Build a ``{success: true, ...}`` reply body."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = to_payload(data)
    body.update(extra)
    return body


def failure(msg: str) -> dict[str, Any]:
    return {"success": False, "msg": msg}
