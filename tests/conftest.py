"""Shared test fixtures."""
from __future__ import annotations

import dataclasses
import json
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator
from uuid import UUID

import jwt
import pytest

from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.repositories.outbox import OutboxRecord
from roadside_chat.config import settings
from roadside_chat.domain.entities.assist_request import AssistRequest, Location, Vehicle
from roadside_chat.domain.entities.conversation import Conversation
from roadside_chat.domain.entities.message import Message
from roadside_chat.domain.entities.read_state import ReadState
from roadside_chat.domain.entities.user import UserProfile
from roadside_chat.domain.value_objects.enums import AssistStatus, ConversationType
from roadside_chat.infrastructure.ws.manager import ConnectionManager


@pytest.fixture
def alice() -> Principal:
    return Principal(user_id="alice", name="Alice", avatar="a.png")


@pytest.fixture
def bob() -> Principal:
    return Principal(user_id="bob", name="Bob", avatar="b.png")


@pytest.fixture
def carol() -> Principal:
    return Principal(user_id="carol", name="Carol")


@pytest.fixture
def operator() -> Principal:
    return Principal(user_id="op-1", name="Olga", roles=["operator"])


def make_conversation(
    participants: tuple[str, ...] = ("alice", "bob"),
    *,
    conv_type: str = ConversationType.DIRECT,
    name: str = "",
    conversation_id: UUID | None = None,
    updated_at: datetime | None = None,
) -> Conversation:
    now = datetime.now(timezone.utc)
    return Conversation(
        id=conversation_id or uuid.uuid4(),
        type=str(conv_type),
        participant_ids=participants,
        name=name,
        avatar="",
        last_message_id=None,
        created_by=participants[0],
        created_at=now,
        updated_at=updated_at or now,
    )


def make_assist_request(user_id: str = "alice", *, status: str = AssistStatus.PENDING) -> AssistRequest:
    now = datetime.now(timezone.utc)
    return AssistRequest(
        id=uuid.uuid4(),
        user_id=user_id,
        customer_name="Alice",
        customer_email="alice@example.com",
        customer_phone="+100",
        vehicle=Vehicle(model="Civic", plate="ABC123"),
        location=Location(longitude=13.4, latitude=52.5, address="Main St"),
        status=str(status),
        assigned_to=None,
        created_at=now,
        updated_at=now,
    )


def make_token(user_id: str = "alice", name: str = "", roles: list[str] | None = None) -> str:
    return jwt.encode(
        {"user": {"id": user_id, "name": name or user_id.title(), "avatar": ""}, "roles": roles or []},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def make_profile(user_id: str, name: str = "", push_token: str | None = None) -> UserProfile:
    return UserProfile(
        id=user_id,
        name=name or user_id.title(),
        avatar="",
        email=f"{user_id}@example.com",
        phone="",
        push_token=push_token,
    )


# -- in-memory store -------------------------------------------------------------


@dataclass
class FakeDB:
    conversations: dict[UUID, Conversation] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)
    read_states: dict[tuple[UUID, str], ReadState] = field(default_factory=dict)
    assist_requests: dict[UUID, AssistRequest] = field(default_factory=dict)
    profiles: dict[str, UserProfile] = field(default_factory=dict)
    outbox: list[dict[str, Any]] = field(default_factory=list)

    def add_conversation(self, conversation: Conversation) -> Conversation:
        self.conversations[conversation.id] = conversation
        for uid in conversation.participant_ids:
            self.read_states.setdefault(
                (conversation.id, uid),
                ReadState(conversation.id, uid, 0, None, False),
            )
        return conversation

    def unread(self, conversation_id: UUID, user_id: str) -> int | None:
        state = self.read_states.get((conversation_id, user_id))
        return state.unread_count if state else None


@dataclass
class FakeConversationReader:
    _db: FakeDB

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        return self._db.conversations.get(conversation_id)

    async def get_direct(self, key: str) -> Conversation | None:
        for c in self._db.conversations.values():
            if c.direct_key == key:
                return c
        return None

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        convs = [c for c in self._db.conversations.values() if c.has_participant(user_id)]
        convs.sort(key=lambda c: str(c.id))
        convs.sort(key=lambda c: c.created_at)
        convs.sort(key=lambda c: c.updated_at, reverse=True)
        return convs

    async def list_ids_for_user(self, user_id: str) -> list[UUID]:
        return [c.id for c in self._db.conversations.values() if c.has_participant(user_id)]


@dataclass
class FakeConversationWriter:
    _db: FakeDB

    async def create(self, conversation: Conversation) -> Conversation:
        self._db.conversations[conversation.id] = conversation
        return conversation

    async def create_direct_if_absent(self, conversation: Conversation) -> tuple[Conversation, bool]:
        for c in self._db.conversations.values():
            if c.direct_key == conversation.direct_key:
                return c, False
        self._db.conversations[conversation.id] = conversation
        return conversation, True

    async def touch_last_message(self, conversation_id: UUID, message_id: UUID, ts: datetime) -> None:
        conv = self._db.conversations[conversation_id]
        self._db.conversations[conversation_id] = dataclasses.replace(
            conv, last_message_id=message_id, updated_at=ts,
        )

    async def delete(self, conversation_id: UUID) -> None:
        self._db.conversations.pop(conversation_id, None)


@dataclass
class FakeMessageReader:
    _db: FakeDB

    async def list_recent(self, conversation_id: UUID, *, limit: int = 50) -> list[Message]:
        indexed = [
            (i, m) for i, m in enumerate(self._db.messages) if m.conversation_id == conversation_id
        ]
        indexed.sort(key=lambda p: (p[1].created_at, p[0]), reverse=True)
        return [m for _, m in indexed][:limit]

    async def get_many(self, message_ids: list[UUID]) -> list[Message]:
        wanted = set(message_ids)
        return [m for m in self._db.messages if m.id in wanted]


@dataclass
class FakeMessageWriter:
    _db: FakeDB

    async def append(self, message: Message) -> Message:
        self._db.messages.append(message)
        return message

    async def delete_for_conversation(self, conversation_id: UUID) -> int:
        before = len(self._db.messages)
        self._db.messages = [m for m in self._db.messages if m.conversation_id != conversation_id]
        return before - len(self._db.messages)


@dataclass
class FakeReadStateReader:
    _db: FakeDB

    async def unread_counts(self, user_id: str, conversation_ids: list[UUID]) -> dict[UUID, int]:
        return {
            cid: self._db.read_states[(cid, user_id)].unread_count
            for cid in conversation_ids
            if (cid, user_id) in self._db.read_states
        }

    async def unread_for_users(self, conversation_id: UUID, user_ids: list[str]) -> dict[str, int]:
        return {
            uid: self._db.read_states[(conversation_id, uid)].unread_count
            for uid in user_ids
            if (conversation_id, uid) in self._db.read_states
        }


@dataclass
class FakeReadStateWriter:
    _db: FakeDB

    async def ensure(self, conversation_id: UUID, user_ids: list[str]) -> None:
        for uid in user_ids:
            self._db.read_states.setdefault(
                (conversation_id, uid), ReadState(conversation_id, uid, 0, None, False),
            )

    async def increment_unread(self, conversation_id: UUID, user_ids: list[str]) -> None:
        for uid in user_ids:
            state = self._db.read_states.get((conversation_id, uid))
            count = state.unread_count if state else 0
            self._db.read_states[(conversation_id, uid)] = ReadState(
                conversation_id, uid, count + 1, state.last_read_at if state else None, False,
            )

    async def mark_read(self, conversation_id: UUID, user_id: str, ts: datetime) -> None:
        self._db.read_states[(conversation_id, user_id)] = ReadState(
            conversation_id, user_id, 0, ts, False,
        )

    async def delete_for_conversation(self, conversation_id: UUID) -> int:
        keys = [k for k in self._db.read_states if k[0] == conversation_id]
        for k in keys:
            del self._db.read_states[k]
        return len(keys)


@dataclass
class FakeAssistRequestReader:
    _db: FakeDB

    async def get_by_id(self, request_id: UUID) -> AssistRequest | None:
        return self._db.assist_requests.get(request_id)

    async def list_pending(self, *, limit: int = 50) -> list[AssistRequest]:
        pending = [r for r in self._db.assist_requests.values() if r.status == AssistStatus.PENDING]
        pending.sort(key=lambda r: r.created_at, reverse=True)
        return pending[:limit]


@dataclass
class FakeAssistRequestWriter:
    _db: FakeDB

    async def create(self, request: AssistRequest) -> AssistRequest:
        self._db.assist_requests[request.id] = request
        return request

    async def accept_if_pending(
        self, request_id: UUID, operator_id: str, ts: datetime,
    ) -> AssistRequest | None:
        # Check-and-set with no await in between, like the conditional UPDATE.
        current = self._db.assist_requests.get(request_id)
        if current is None or current.status != AssistStatus.PENDING or current.user_id == operator_id:
            return None
        updated = dataclasses.replace(
            current, status=AssistStatus.ACCEPTED.value, assigned_to=operator_id, updated_at=ts,
        )
        self._db.assist_requests[request_id] = updated
        return updated

    async def set_status(self, request_id: UUID, status: str, ts: datetime) -> AssistRequest | None:
        current = self._db.assist_requests.get(request_id)
        if current is None:
            return None
        updated = dataclasses.replace(current, status=status, updated_at=ts)
        self._db.assist_requests[request_id] = updated
        return updated


@dataclass
class FakeProfileReader:
    _db: FakeDB

    async def get(self, user_id: str) -> UserProfile | None:
        return self._db.profiles.get(user_id)

    async def get_many(self, user_ids: list[str]) -> dict[str, UserProfile]:
        return {uid: self._db.profiles[uid] for uid in user_ids if uid in self._db.profiles}


@dataclass
class FakeProfileWriter:
    _db: FakeDB

    async def set_push_token(self, user_id: str, token: str, *, name: str = "", avatar: str = "") -> None:
        current = self._db.profiles.get(user_id)
        if current is None:
            current = UserProfile(id=user_id, name=name, avatar=avatar, email="", phone="")
        self._db.profiles[user_id] = dataclasses.replace(current, push_token=token)


@dataclass
class FakeOutboxWriter:
    _db: FakeDB

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        self._db.outbox.append(
            {
                "id": len(self._db.outbox) + 1,
                "event_type": event_type,
                "payload": payload,
                "status": "pending",
                "attempts": 0,
                "next_retry_at": None,
                "last_error": None,
            }
        )

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        now = datetime.now(timezone.utc)
        due = [
            r for r in self._db.outbox
            if r["status"] in ("pending", "failed")
            and (r["next_retry_at"] is None or r["next_retry_at"] <= now)
        ][:batch_size]
        for r in due:
            r["status"] = "processing"
        return [OutboxRecord(r["id"], r["event_type"], r["payload"], r["attempts"]) for r in due]

    async def mark_sent(self, ids: list[int]) -> None:
        for r in self._db.outbox:
            if r["id"] in ids:
                r["status"] = "sent"

    async def mark_failed(self, record_id: int, next_retry_at: datetime, error: str = "") -> None:
        for r in self._db.outbox:
            if r["id"] == record_id:
                r["status"] = "failed"
                r["attempts"] += 1
                r["next_retry_at"] = next_retry_at
                r["last_error"] = error


class FakeUoW:
    """In-memory UoW for unit tests. Several UoWs may share one FakeDB."""

    def __init__(self, db: FakeDB | None = None) -> None:
        self.db = db or FakeDB()
        self.conversations = FakeConversationReader(self.db)
        self.conversations_w = FakeConversationWriter(self.db)
        self.messages = FakeMessageReader(self.db)
        self.messages_w = FakeMessageWriter(self.db)
        self.read_states = FakeReadStateReader(self.db)
        self.read_states_w = FakeReadStateWriter(self.db)
        self.assist_requests = FakeAssistRequestReader(self.db)
        self.assist_requests_w = FakeAssistRequestWriter(self.db)
        self.profiles = FakeProfileReader(self.db)
        self.profiles_w = FakeProfileWriter(self.db)
        self.outbox = FakeOutboxWriter(self.db)
        self.commits = 0

    @property
    def committed(self) -> bool:
        return self.commits > 0

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass


def fake_uow_factory(db: FakeDB):
    @asynccontextmanager
    async def _scope() -> AsyncIterator[FakeUoW]:
        yield FakeUoW(db)

    return _scope


# -- realtime --------------------------------------------------------------------


class FakeSocket:
    """Records every frame the registry sends to it."""

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = fail

    async def send_text(self, raw: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(raw))

    def events(self, event_type: str | None = None) -> list[dict[str, Any]]:
        if event_type is None:
            return self.sent
        return [f["data"] for f in self.sent if f["type"] == event_type]

    def types(self) -> list[str]:
        return [f["type"] for f in self.sent]


def connect(hub: ConnectionManager, user_id: str, *, name: str = "", fail: bool = False) -> tuple[str, FakeSocket]:
    connection_id = uuid.uuid4().hex
    socket = FakeSocket(fail=fail)
    hub.register(connection_id, user_id, socket, display_name=name or user_id.title())  # type: ignore[arg-type]
    return connection_id, socket


@pytest.fixture
def db() -> FakeDB:
    db = FakeDB()
    for uid, name in (("alice", "Alice"), ("bob", "Bob"), ("carol", "Carol"), ("op-1", "Olga")):
        db.profiles[uid] = make_profile(uid, name)
    return db


@pytest.fixture
def uow(db: FakeDB) -> FakeUoW:
    return FakeUoW(db)


@pytest.fixture
def hub() -> ConnectionManager:
    return ConnectionManager()


def minutes_ago(n: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(minutes=n)

