"""One-time script: create all tables from the ORM metadata."""
from __future__ import annotations

import asyncio
import logging

from roadside_chat.infrastructure.db import models  # noqa: F401
from roadside_chat.infrastructure.db.base import Base
from roadside_chat.infrastructure.db.session import engine

logger = logging.getLogger(__name__)


async def create_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info("Created %d tables", len(Base.metadata.tables))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_schema())


if __name__ == "__main__":
    main()
