from __future__ import annotations

from typing import Protocol

from roadside_chat.application.repositories.assist_request import (
    AssistRequestReader,
    AssistRequestWriter,
)
from roadside_chat.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from roadside_chat.application.repositories.message import MessageReader, MessageWriter
from roadside_chat.application.repositories.outbox import OutboxWriter
from roadside_chat.application.repositories.profile import ProfileReader, ProfileWriter
from roadside_chat.application.repositories.read_state import (
    ReadStateReader,
    ReadStateWriter,
)


class UnitOfWork(Protocol):
    conversations: ConversationReader
    conversations_w: ConversationWriter
    messages: MessageReader
    messages_w: MessageWriter
    read_states: ReadStateReader
    read_states_w: ReadStateWriter
    assist_requests: AssistRequestReader
    assist_requests_w: AssistRequestWriter
    profiles: ProfileReader
    profiles_w: ProfileWriter
    outbox: OutboxWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
