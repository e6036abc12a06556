from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from roadside_chat.domain.entities.user import UserProfile
from roadside_chat.infrastructure.db.mappers import user as mapper
from roadside_chat.infrastructure.db.models.user import UserModel


class ProfileReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str) -> UserProfile | None:
        model = await self._session.get(UserModel, user_id)
        return mapper.model_to_entity(model) if model else None

    async def get_many(self, user_ids: list[str]) -> dict[str, UserProfile]:
        if not user_ids:
            return {}
        stmt = select(UserModel).where(UserModel.id.in_(set(user_ids)))
        result = await self._session.execute(stmt)
        return {m.id: mapper.model_to_entity(m) for m in result.scalars().all()}


class ProfileWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def set_push_token(
        self,
        user_id: str,
        token: str,
        *,
        name: str = "",
        avatar: str = "",
    ) -> None:
        # Users normally exist already; insert a minimal row when the auth service has not synced it yet.
        stmt = (
            pg_insert(UserModel)
            .values(id=user_id, name=name, avatar=avatar, push_token=token)
            .on_conflict_do_update(
                index_elements=[UserModel.id],
                set_={"push_token": token},
            )
        )
        await self._session.execute(stmt)
