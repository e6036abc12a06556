from __future__ import annotations

from roadside_chat.domain.entities.user import UserProfile
from roadside_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> UserProfile:
    return UserProfile(
        id=model.id,
        name=model.name,
        avatar=model.avatar,
        email=model.email,
        phone=model.phone,
        push_token=model.push_token,
    )
