from __future__ import annotations

from typing import Any

from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.exceptions import UnauthorizedError


def principal_from_claims(payload: dict[str, Any]) -> Principal:
    """Build a Principal from either the auth service's ``user`` claim or flat ``sub`` claims."""
    user = payload.get("user")
    if isinstance(user, dict):
        user_id = user.get("id") or user.get("_id")
        name = user.get("name", "")
        avatar = user.get("avatar", "")
    else:
        user_id = payload.get("sub")
        name = payload.get("name", "")
        avatar = payload.get("avatar", "")

    if not user_id:
        raise UnauthorizedError("Token carries no user id")

    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    role = payload.get("role")
    if role and role not in roles:
        roles = [*roles, role]

    return Principal(
        user_id=str(user_id),
        name=name or "",
        avatar=avatar or "",
        roles=list(roles),
    )
