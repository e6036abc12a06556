from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError

from roadside_chat.domain.value_objects.enums import CallKind, ConversationType
from roadside_chat.infrastructure.ws.protocol import (
    AssistCreate,
    CallSignal,
    MarkAsRead,
    NewConversation,
    NewMessage,
    Ping,
    inbound_adapter,
)


def test_camel_case_payload():
    cid = uuid.uuid4()
    msg = inbound_adapter.validate_python(
        {"type": "newMessage", "data": {"conversationId": str(cid), "content": "hi"}}
    )
    assert isinstance(msg, NewMessage)
    assert msg.data.conversation_id == cid
    assert msg.data.attachment is None


def test_bare_conversation_id_accepted():
    cid = uuid.uuid4()
    msg = inbound_adapter.validate_python({"type": "markAsRead", "data": str(cid)})
    assert isinstance(msg, MarkAsRead)
    assert msg.data.conversation_id == cid


def test_new_conversation_strips_blank_participants():
    msg = inbound_adapter.validate_json(
        '{"type": "newConversation", "data": {"type": "group", "participants": ["bob", " ", "carol "]}}'
    )
    assert isinstance(msg, NewConversation)
    assert msg.data.type == ConversationType.GROUP
    assert msg.data.participants == ["bob", "carol"]


def test_call_signal_variants_and_from_alias():
    cid = uuid.uuid4()
    msg = inbound_adapter.validate_python(
        {
            "type": "call:reject",
            "data": {"conversationId": str(cid), "channel": "c", "from": {"id": "bob"}},
        }
    )
    assert isinstance(msg, CallSignal)
    assert msg.data.kind == CallKind.VIDEO
    assert msg.data.from_ is not None
    assert msg.data.from_.id == "bob"


def test_legacy_assist_request_event():
    msg = inbound_adapter.validate_python(
        {"type": "assistRequest", "data": {"location": {"lat": 1.5, "lng": 2.5}}}
    )
    assert isinstance(msg, AssistCreate)
    assert msg.data.location.lat == 1.5
    assert msg.data.vehicle.model == ""


def test_ping_without_data():
    assert isinstance(inbound_adapter.validate_json('{"type": "ping"}'), Ping)


@pytest.mark.parametrize(
    "raw",
    [
        '{"type": "nope"}',
        '{"type": "newMessage", "data": {"conversationId": "not-a-uuid"}}',
        '{"type": "call:invite", "data": {"conversationId": "%s", "channel": ""}}' % uuid.uuid4(),
        '{"type": "assist:status", "data": {"status": "completed"}}',
        "[]",
    ],
)
def test_malformed_envelopes_rejected(raw):
    with pytest.raises(ValidationError):
        inbound_adapter.validate_json(raw)
