from __future__ import annotations

from typing import Protocol

from roadside_chat.domain.entities.user import UserProfile


class ProfileReader(Protocol):
    async def get(self, user_id: str) -> UserProfile | None: ...

    async def get_many(self, user_ids: list[str]) -> dict[str, UserProfile]: ...


class ProfileWriter(Protocol):
    async def set_push_token(
        self, user_id: str, token: str, *, name: str = "", avatar: str = "",
    ) -> None: ...
