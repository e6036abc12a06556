"""Seed development data: a customer, an operator, a direct chat and a pending assist request."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

from roadside_chat.domain.entities.assist_request import AssistRequest, Location, Vehicle
from roadside_chat.domain.entities.conversation import Conversation
from roadside_chat.domain.entities.message import Message
from roadside_chat.domain.value_objects.enums import AssistStatus, ConversationType
from roadside_chat.infrastructure.db.models.user import UserModel
from roadside_chat.infrastructure.db.session import AsyncSessionLocal
from roadside_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

CUSTOMER_ID = "dev-customer"
OPERATOR_ID = "dev-operator"


async def seed() -> None:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        now = datetime.now(timezone.utc)

        session.add_all(
            [
                UserModel(id=CUSTOMER_ID, name="Dana Driver", email="dana@example.com", phone="+15550100"),
                UserModel(id=OPERATOR_ID, name="Omar Operator", email="omar@example.com", phone="+15550199"),
            ]
        )
        await session.flush()

        conv, _ = await uow.conversations_w.create_direct_if_absent(
            Conversation(
                id=uuid.uuid4(),
                type=ConversationType.DIRECT.value,
                participant_ids=(CUSTOMER_ID, OPERATOR_ID),
                name="",
                avatar="",
                last_message_id=None,
                created_by=CUSTOMER_ID,
                created_at=now,
                updated_at=now,
            )
        )
        await uow.read_states_w.ensure(conv.id, [CUSTOMER_ID, OPERATOR_ID])

        messages_data = [
            (CUSTOMER_ID, "Hi, my car won't start."),
            (OPERATOR_ID, "Sorry to hear that. Where are you parked?"),
            (CUSTOMER_ID, "Level 2 of the Main St garage."),
        ]
        last: Message | None = None
        for offset, (sender_id, content) in enumerate(messages_data):
            last = await uow.messages_w.append(
                Message(
                    id=uuid.uuid4(),
                    conversation_id=conv.id,
                    sender_id=sender_id,
                    content=content,
                    attachment=None,
                    created_at=now + timedelta(seconds=offset),
                )
            )
            await uow.read_states_w.increment_unread(
                conv.id, [uid for uid in (CUSTOMER_ID, OPERATOR_ID) if uid != sender_id],
            )
        if last is not None:
            await uow.conversations_w.touch_last_message(conv.id, last.id, last.created_at)

        await uow.assist_requests_w.create(
            AssistRequest(
                id=uuid.uuid4(),
                user_id=CUSTOMER_ID,
                customer_name="Dana Driver",
                customer_email="dana@example.com",
                customer_phone="+15550100",
                vehicle=Vehicle(model="Civic 2014", plate="7ABC123", notes="Battery?"),
                location=Location(longitude=-122.4194, latitude=37.7749, address="Main St garage"),
                status=AssistStatus.PENDING.value,
                assigned_to=None,
                created_at=now,
                updated_at=now,
            )
        )

        await uow.commit()
        logger.info("Seeded conversation %s with %d messages", conv.id, len(messages_data))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
