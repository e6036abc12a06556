"""Outbox worker: polls pending outbox records and delivers push notifications."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from roadside_chat.api.middleware.correlation_id import configure_logging
from roadside_chat.application.ports.push import PushSender
from roadside_chat.application.repositories.outbox import OutboxRecord
from roadside_chat.application.uow import UnitOfWork
from roadside_chat.config import settings
from roadside_chat.infrastructure.db.session import uow_scope
from roadside_chat.infrastructure.push.expo import ExpoPushSender
from roadside_chat.services.message_service import PUSH_MESSAGE_EVENT

logger = logging.getLogger(__name__)

BASE_DELAY_SECONDS = 5
MAX_DELAY_SECONDS = 300


def _calc_backoff(attempts: int) -> datetime:
    delay = min(BASE_DELAY_SECONDS * (2 ** attempts), MAX_DELAY_SECONDS)
    return datetime.now(timezone.utc) + timedelta(seconds=delay)


async def _deliver(record: OutboxRecord, sender: PushSender) -> None:
    if record.event_type != PUSH_MESSAGE_EVENT:
        raise ValueError(f"unknown outbox event type {record.event_type!r}")
    payload = record.payload
    await sender.send(
        list(payload.get("tokens") or []),
        payload.get("title", ""),
        payload.get("body", ""),
        payload.get("data") or {},
    )


async def process_batch(uow: UnitOfWork, sender: PushSender) -> int:
    """Deliver one batch of outbox records. Returns the number marked sent."""
    batch = await uow.outbox.fetch_pending(settings.OUTBOX_BATCH_SIZE)
    if not batch:
        return 0

    sent_ids: list[int] = []
    for record in batch:
        if record.attempts >= settings.OUTBOX_MAX_ATTEMPTS:
            logger.warning("Outbox record %d exceeded max attempts, skipping", record.id)
            continue
        try:
            await _deliver(record, sender)
            sent_ids.append(record.id)
        except Exception as exc:
            logger.exception("Failed to deliver outbox record %d", record.id)
            await uow.outbox.mark_failed(record.id, _calc_backoff(record.attempts), str(exc))

    if sent_ids:
        await uow.outbox.mark_sent(sent_ids)

    await uow.commit()
    if sent_ids:
        logger.info("Delivered %d outbox records", len(sent_ids))
    return len(sent_ids)


async def run_outbox_worker() -> None:
    sender = ExpoPushSender(
        settings.EXPO_PUSH_URL,
        access_token=settings.EXPO_ACCESS_TOKEN,
        timeout=settings.PUSH_TIMEOUT_SECONDS,
    )

    logger.info(
        "Outbox worker started (poll=%.1fs, batch=%d, max_attempts=%d)",
        settings.OUTBOX_POLL_INTERVAL,
        settings.OUTBOX_BATCH_SIZE,
        settings.OUTBOX_MAX_ATTEMPTS,
    )

    try:
        while True:
            try:
                async with uow_scope() as uow:
                    await process_batch(uow, sender)
            except Exception:
                logger.exception("Outbox worker loop error")
            await asyncio.sleep(settings.OUTBOX_POLL_INTERVAL)
    finally:
        await sender.aclose()


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(run_outbox_worker())


if __name__ == "__main__":
    main()
