"""WebSocket message envelope models.

Inbound envelopes are a closed union discriminated on ``type``; payload
fields are camelCase on the wire.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from roadside_chat.domain.value_objects.enums import CallKind, ConversationType


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str
    data: dict[str, Any] = {}


# -- payloads -----------------------------------------------------------------


class NewConversationData(_Payload):
    type: ConversationType
    participants: list[str] = Field(default_factory=list)
    name: str = ""
    avatar: str = ""

    @field_validator("participants")
    @classmethod
    def _strip_ids(cls, v: list[str]) -> list[str]:
        return [p.strip() for p in v if p and p.strip()]


class ConversationRef(_Payload):
    conversation_id: UUID


class NewMessageData(_Payload):
    conversation_id: UUID
    content: str | None = None
    attachment: str | None = None


class CallerData(_Payload):
    id: str
    name: str = ""
    avatar: str = ""


class CallData(_Payload):
    conversation_id: UUID
    channel: str = Field(min_length=1)
    kind: CallKind = CallKind.VIDEO
    from_: CallerData | None = Field(default=None, alias="from")


class VehicleData(_Payload):
    model: str = ""
    plate: str = ""
    notes: str = ""


class LocationData(_Payload):
    lat: float | None = None
    lng: float | None = None
    address: str = ""
    accuracy: float | None = None


class AssistCreateData(_Payload):
    vehicle: VehicleData = Field(default_factory=VehicleData)
    location: LocationData = Field(default_factory=LocationData)


class AssistRef(_Payload):
    id: UUID


class AssistStatusData(_Payload):
    id: UUID
    status: str


class PushTokenData(_Payload):
    token: str = Field(min_length=1)


# -- envelopes ----------------------------------------------------------------


class _ConversationEnvelope(BaseModel):
    data: ConversationRef

    @field_validator("data", mode="before")
    @classmethod
    def accept_bare_id(cls, value: Any) -> Any:
        # Clients may send the bare id instead of {"conversationId": ...}
        if isinstance(value, str):
            return {"conversationId": value}
        return value


class GetConversations(BaseModel):
    type: Literal["getConversations"]
    data: dict[str, Any] = {}


class NewConversation(BaseModel):
    type: Literal["newConversation"]
    data: NewConversationData


class DeleteConversation(_ConversationEnvelope):
    type: Literal["deleteConversation"]


class GetMessages(_ConversationEnvelope):
    type: Literal["getMessages"]


class NewMessage(BaseModel):
    type: Literal["newMessage"]
    data: NewMessageData


class MarkAsRead(_ConversationEnvelope):
    type: Literal["markAsRead"]


class CallInvite(BaseModel):
    type: Literal["call:invite"]
    data: CallData


class CallSignal(BaseModel):
    type: Literal["call:accept", "call:reject", "call:cancel"]
    data: CallData


class AssistCreate(BaseModel):
    type: Literal["assist:create", "assistRequest"]
    data: AssistCreateData = Field(default_factory=AssistCreateData)


class JoinOperators(BaseModel):
    type: Literal["joinOperators"]
    data: dict[str, Any] = {}


class AssistAccept(BaseModel):
    type: Literal["assist:accept"]
    data: AssistRef


class AssistStatusUpdate(BaseModel):
    type: Literal["assist:status"]
    data: AssistStatusData


class RegisterPushToken(BaseModel):
    type: Literal["registerPushToken"]
    data: PushTokenData


class Ping(BaseModel):
    type: Literal["ping"]
    data: dict[str, Any] = {}


WsInbound = Annotated[
    Union[
        GetConversations,
        NewConversation,
        DeleteConversation,
        GetMessages,
        NewMessage,
        MarkAsRead,
        CallInvite,
        CallSignal,
        AssistCreate,
        JoinOperators,
        AssistAccept,
        AssistStatusUpdate,
        RegisterPushToken,
        Ping,
    ],
    Field(discriminator="type"),
]

inbound_adapter: TypeAdapter[WsInbound] = TypeAdapter(WsInbound)

KNOWN_EVENTS = frozenset(
    {
        "getConversations", "newConversation", "deleteConversation",
        "getMessages", "newMessage", "markAsRead",
        "call:invite", "call:accept", "call:reject", "call:cancel",
        "assist:create", "assistRequest", "joinOperators",
        "assist:accept", "assist:status", "registerPushToken", "ping",
    }
)
