from __future__ import annotations

from roadside_chat.domain.entities.conversation import Conversation
from roadside_chat.infrastructure.db.models.conversation import ConversationModel
from roadside_chat.infrastructure.db.models.participant import ParticipantModel


def model_to_entity(model: ConversationModel) -> Conversation:
    ordered = sorted(model.participants, key=lambda p: (p.joined_at, p.user_id))
    return Conversation(
        id=model.id,
        type=model.type,
        participant_ids=tuple(p.user_id for p in ordered),
        name=model.name,
        avatar=model.avatar,
        last_message_id=model.last_message_id,
        created_by=model.created_by,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_values(entity: Conversation) -> dict:
    return {
        "id": entity.id,
        "type": entity.type,
        "name": entity.name,
        "avatar": entity.avatar,
        "direct_key": entity.direct_key,
        "last_message_id": entity.last_message_id,
        "created_by": entity.created_by,
        "created_at": entity.created_at,
        "updated_at": entity.updated_at,
    }


def entity_to_model(entity: Conversation) -> ConversationModel:
    model = ConversationModel(**entity_to_values(entity))
    model.participants = [
        ParticipantModel(conversation_id=entity.id, user_id=uid, joined_at=entity.created_at)
        for uid in entity.participant_ids
    ]
    return model
