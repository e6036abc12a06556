"""Import all models so Base.metadata sees every table."""
from roadside_chat.infrastructure.db.models.assist_request import AssistRequestModel
from roadside_chat.infrastructure.db.models.conversation import ConversationModel
from roadside_chat.infrastructure.db.models.message import MessageModel
from roadside_chat.infrastructure.db.models.outbox import OutboxMessageModel
from roadside_chat.infrastructure.db.models.participant import ParticipantModel
from roadside_chat.infrastructure.db.models.read_state import ReadStateModel
from roadside_chat.infrastructure.db.models.user import UserModel

__all__ = [
    "AssistRequestModel",
    "ConversationModel",
    "MessageModel",
    "OutboxMessageModel",
    "ParticipantModel",
    "ReadStateModel",
    "UserModel",
]
