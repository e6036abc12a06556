from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from roadside_chat.domain.entities.assist_request import AssistRequest


class AssistRequestReader(Protocol):
    async def get_by_id(self, request_id: UUID) -> AssistRequest | None: ...

    async def list_pending(self, *, limit: int = 50) -> list[AssistRequest]: ...


class AssistRequestWriter(Protocol):
    async def create(self, request: AssistRequest) -> AssistRequest: ...

    async def accept_if_pending(
        self, request_id: UUID, operator_id: str, ts: datetime,
    ) -> AssistRequest | None:
        """Conditional update: pending -> accepted. None when nothing matched."""
        ...

    async def set_status(
        self, request_id: UUID, status: str, ts: datetime,
    ) -> AssistRequest | None: ...
