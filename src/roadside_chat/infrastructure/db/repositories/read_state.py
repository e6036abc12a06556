from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from roadside_chat.infrastructure.db.models.read_state import ReadStateModel


class ReadStateReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def unread_counts(
        self,
        user_id: str,
        conversation_ids: list[UUID],
    ) -> dict[UUID, int]:
        if not conversation_ids:
            return {}
        stmt = select(ReadStateModel.conversation_id, ReadStateModel.unread_count).where(
            ReadStateModel.user_id == user_id,
            ReadStateModel.conversation_id.in_(conversation_ids),
        )
        result = await self._session.execute(stmt)
        return {cid: count for cid, count in result.all()}

    async def unread_for_users(
        self,
        conversation_id: UUID,
        user_ids: list[str],
    ) -> dict[str, int]:
        if not user_ids:
            return {}
        stmt = select(ReadStateModel.user_id, ReadStateModel.unread_count).where(
            ReadStateModel.conversation_id == conversation_id,
            ReadStateModel.user_id.in_(user_ids),
        )
        result = await self._session.execute(stmt)
        return {uid: count for uid, count in result.all()}


class ReadStateWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def ensure(self, conversation_id: UUID, user_ids: list[str]) -> None:
        if not user_ids:
            return
        stmt = (
            pg_insert(ReadStateModel)
            .values(
                [
                    {"conversation_id": conversation_id, "user_id": uid, "unread_count": 0}
                    for uid in user_ids
                ]
            )
            .on_conflict_do_nothing(constraint="uq_read_state_member")
        )
        await self._session.execute(stmt)

    async def increment_unread(self, conversation_id: UUID, user_ids: list[str]) -> None:
        if not user_ids:
            return
        stmt = pg_insert(ReadStateModel).values(
            [
                {
                    "conversation_id": conversation_id,
                    "user_id": uid,
                    "unread_count": 1,
                    "is_deleted": False,
                }
                for uid in user_ids
            ]
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_read_state_member",
            set_={
                "unread_count": ReadStateModel.unread_count + 1,
                "is_deleted": False,
                "updated_at": func.now(),
            },
        )
        await self._session.execute(stmt)

    async def mark_read(self, conversation_id: UUID, user_id: str, ts: datetime) -> None:
        stmt = (
            pg_insert(ReadStateModel)
            .values(
                conversation_id=conversation_id,
                user_id=user_id,
                unread_count=0,
                last_read_at=ts,
                is_deleted=False,
            )
            .on_conflict_do_update(
                constraint="uq_read_state_member",
                set_={
                    "unread_count": 0,
                    "last_read_at": ts,
                    "is_deleted": False,
                    "updated_at": func.now(),
                },
            )
        )
        await self._session.execute(stmt)

    async def delete_for_conversation(self, conversation_id: UUID) -> int:
        result = await self._session.execute(
            delete(ReadStateModel).where(ReadStateModel.conversation_id == conversation_id)
        )
        return result.rowcount or 0
