from __future__ import annotations

import logging

from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.exceptions import InvalidPayloadError
from roadside_chat.application.uow import UnitOfWork

logger = logging.getLogger(__name__)


async def register_push_token(principal: Principal, token: str, uow: UnitOfWork) -> None:
    token = token.strip()
    if not token:
        raise InvalidPayloadError("Push token is required")
    await uow.profiles_w.set_push_token(
        principal.user_id, token, name=principal.name, avatar=principal.avatar,
    )
    await uow.commit()
    logger.info("Push token registered for %s", principal.user_id)
