from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from roadside_chat.domain.entities.assist_request import AssistRequest
from roadside_chat.domain.value_objects.enums import AssistStatus
from roadside_chat.infrastructure.db.mappers import assist_request as mapper
from roadside_chat.infrastructure.db.models.assist_request import AssistRequestModel


class AssistRequestReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, request_id: UUID) -> AssistRequest | None:
        model = await self._session.get(AssistRequestModel, request_id, populate_existing=True)
        return mapper.model_to_entity(model) if model else None

    async def list_pending(self, *, limit: int = 50) -> list[AssistRequest]:
        stmt = (
            select(AssistRequestModel)
            .where(AssistRequestModel.status == AssistStatus.PENDING)
            .order_by(AssistRequestModel.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class AssistRequestWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, request: AssistRequest) -> AssistRequest:
        model = mapper.entity_to_model(request)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def accept_if_pending(
        self,
        request_id: UUID,
        operator_id: str,
        ts: datetime,
    ) -> AssistRequest | None:
        # Single conditional UPDATE: concurrent accepts cannot both match.
        stmt = (
            update(AssistRequestModel)
            .where(
                AssistRequestModel.id == request_id,
                AssistRequestModel.status == AssistStatus.PENDING,
                AssistRequestModel.user_id != operator_id,
            )
            .values(status=AssistStatus.ACCEPTED, assigned_to=operator_id, updated_at=ts)
            .returning(AssistRequestModel.id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.scalar_one_or_none() is None:
            return None
        return await self._reload(request_id)

    async def set_status(
        self,
        request_id: UUID,
        status: str,
        ts: datetime,
    ) -> AssistRequest | None:
        stmt = (
            update(AssistRequestModel)
            .where(AssistRequestModel.id == request_id)
            .values(status=status, updated_at=ts)
            .returning(AssistRequestModel.id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.scalar_one_or_none() is None:
            return None
        return await self._reload(request_id)

    async def _reload(self, request_id: UUID) -> AssistRequest:
        model = await self._session.get(AssistRequestModel, request_id, populate_existing=True)
        assert model is not None
        return mapper.model_to_entity(model)
