from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from roadside_chat.domain.entities.message import Message
from roadside_chat.infrastructure.db.mappers import message as mapper
from roadside_chat.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_recent(
        self,
        conversation_id: UUID,
        *,
        limit: int = 50,
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def get_many(self, message_ids: list[UUID]) -> list[Message]:
        if not message_ids:
            return []
        stmt = select(MessageModel).where(MessageModel.id.in_(message_ids))
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def delete_for_conversation(self, conversation_id: UUID) -> int:
        result = await self._session.execute(
            delete(MessageModel).where(MessageModel.conversation_id == conversation_id)
        )
        return result.rowcount or 0
