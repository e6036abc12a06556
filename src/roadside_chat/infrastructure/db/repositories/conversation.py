from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from roadside_chat.domain.entities.conversation import Conversation
from roadside_chat.infrastructure.db.mappers import conversation as mapper
from roadside_chat.infrastructure.db.models.conversation import ConversationModel
from roadside_chat.infrastructure.db.models.participant import ParticipantModel


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        result = await self._session.get(
            ConversationModel, conversation_id, populate_existing=True,
        )
        return mapper.model_to_entity(result) if result else None

    async def get_direct(self, direct_key: str) -> Conversation | None:
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.direct_key == direct_key)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .join(
                ParticipantModel,
                ParticipantModel.conversation_id == ConversationModel.id,
            )
            .where(ParticipantModel.user_id == user_id)
            .order_by(
                ConversationModel.updated_at.desc(),
                ConversationModel.created_at.asc(),
                ConversationModel.id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_ids_for_user(self, user_id: str) -> list[UUID]:
        stmt = select(ParticipantModel.conversation_id).where(
            ParticipantModel.user_id == user_id
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, conversation: Conversation) -> Conversation:
        self._session.add(mapper.entity_to_model(conversation))
        await self._session.flush()
        return conversation

    async def create_direct_if_absent(
        self,
        conversation: Conversation,
    ) -> tuple[Conversation, bool]:
        """Insert idempotently on the direct pair key. Returns (conversation, created_flag)."""
        stmt = (
            pg_insert(ConversationModel)
            .values(**mapper.entity_to_values(conversation))
            .on_conflict_do_nothing(constraint="uq_conversation_direct_key")
            .returning(ConversationModel.id)
        )
        result = await self._session.execute(stmt)
        if result.scalar_one_or_none() is not None:
            await self._session.execute(
                pg_insert(ParticipantModel).values(
                    [
                        {
                            "conversation_id": conversation.id,
                            "user_id": uid,
                            "joined_at": conversation.created_at,
                        }
                        for uid in conversation.participant_ids
                    ]
                )
            )
            return conversation, True

        # Conflict: the pair already has a conversation
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.direct_key == conversation.direct_key)
            .execution_options(populate_existing=True)
        )
        existing = (await self._session.execute(stmt)).scalar_one()
        return mapper.model_to_entity(existing), False

    async def touch_last_message(
        self,
        conversation_id: UUID,
        message_id: UUID,
        ts: datetime,
    ) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(last_message_id=message_id, updated_at=ts)
        )
        await self._session.execute(stmt)

    async def delete(self, conversation_id: UUID) -> None:
        await self._session.execute(
            delete(ParticipantModel).where(ParticipantModel.conversation_id == conversation_id)
        )
        await self._session.execute(
            delete(ConversationModel).where(ConversationModel.id == conversation_id)
        )
