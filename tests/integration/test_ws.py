"""Websocket round-trips through the real router and registry with an in-memory store."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from roadside_chat.api.deps import get_hub, get_uow_factory
from roadside_chat.app import create_app
from roadside_chat.infrastructure.ws.manager import ConnectionManager
from tests.conftest import FakeDB, fake_uow_factory, make_conversation, make_token


@pytest.fixture
def client(db: FakeDB, hub: ConnectionManager):
    app = create_app()
    app.dependency_overrides[get_uow_factory] = lambda: fake_uow_factory(db)
    app.dependency_overrides[get_hub] = lambda: hub
    with TestClient(app) as client:
        yield client


def ws_url(user_id: str, **kwargs) -> str:
    return f"/ws?token={make_token(user_id, **kwargs)}"


def test_bad_token_closes_connection(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws?token=garbage"):
            pass
    assert exc_info.value.code == 4001


def test_missing_token_closes_connection(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws"):
            pass


def test_bearer_header_accepted(client):
    headers = {"Authorization": f"Bearer {make_token('alice')}"}
    with client.websocket_connect("/ws", headers=headers) as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong", "data": {}}


def test_unknown_event_gets_error_envelope(client):
    with client.websocket_connect(ws_url("alice")) as ws:
        ws.send_json({"type": "teleport", "data": {}})
        reply = ws.receive_json()
    assert reply["type"] == "error"
    assert reply["data"]["success"] is False


def test_invalid_payload_replies_on_event_name(client):
    with client.websocket_connect(ws_url("alice")) as ws:
        ws.send_json({"type": "newMessage", "data": {"conversationId": "nope"}})
        reply = ws.receive_json()
    assert reply == {"type": "newMessage", "data": {"success": False, "msg": "Invalid payload"}}


def test_app_error_reported_to_requester(client, db):
    conv = db.add_conversation(make_conversation(("bob", "carol")))
    with client.websocket_connect(ws_url("alice")) as ws:
        ws.send_json({"type": "getMessages", "data": str(conv.id)})
        reply = ws.receive_json()
    assert reply["type"] == "getMessages"
    assert reply["data"]["success"] is False


def test_message_flow_between_two_users(client, db, hub):
    conv = db.add_conversation(make_conversation(("alice", "bob")))

    with client.websocket_connect(ws_url("alice", name="Alice")) as alice, \
            client.websocket_connect(ws_url("bob", name="Bob")) as bob:
        alice.send_json({"type": "ping"})
        assert alice.receive_json()["type"] == "pong"
        bob.send_json({"type": "ping"})
        assert bob.receive_json()["type"] == "pong"

        alice.send_json(
            {"type": "newMessage", "data": {"conversationId": str(conv.id), "content": "hi"}}
        )

        alice_frames = [alice.receive_json() for _ in range(3)]
        bob_frames = [bob.receive_json() for _ in range(2)]

    assert [f["type"] for f in alice_frames] == ["newMessage", "messageDelivered", "conversationUpdated"]
    assert alice_frames[1]["data"]["deliveredTo"] == ["Bob"]
    assert [f["type"] for f in bob_frames] == ["newMessage", "conversationUpdated"]
    assert bob_frames[0]["data"]["data"]["content"] == "hi"
    assert bob_frames[1]["data"]["data"]["unreadCount"] == 1
    assert db.unread(conv.id, "bob") == 1


def test_get_conversations_and_mark_as_read(client, db):
    conv = db.add_conversation(make_conversation(("alice", "bob")))
    db.read_states[(conv.id, "alice")] = db.read_states[(conv.id, "alice")].__class__(
        conv.id, "alice", 4, None, False,
    )

    with client.websocket_connect(ws_url("alice")) as ws:
        ws.send_json({"type": "getConversations"})
        listing = ws.receive_json()
        ws.send_json({"type": "markAsRead", "data": {"conversationId": str(conv.id)}})
        updated = ws.receive_json()
        ack = ws.receive_json()

    assert listing["type"] == "getConversations"
    assert listing["data"]["data"][0]["unreadCount"] == 4
    assert updated["type"] == "conversationUpdated"
    assert updated["data"]["data"]["unreadCount"] == 0
    assert ack == {"type": "markAsRead", "data": {"success": True}}
    assert db.unread(conv.id, "alice") == 0


def test_assist_create_reaches_operators(client, db):
    with client.websocket_connect(ws_url("op-1", roles=["operator"])) as op, \
            client.websocket_connect(ws_url("alice")) as customer:
        op.send_json({"type": "joinOperators"})
        op.send_json({"type": "ping"})
        assert op.receive_json()["type"] == "pong"

        customer.send_json(
            {
                "type": "assist:create",
                "data": {"vehicle": {"model": "Golf"}, "location": {"lat": 52.5, "lng": 13.4}},
            }
        )
        legacy_ack = customer.receive_json()
        ack = customer.receive_json()
        created = op.receive_json()

    assert legacy_ack["type"] == "assistRequest"
    assert ack["type"] == "assist:create"
    assert ack["data"]["data"]["id"] == legacy_ack["data"]["data"]["id"]
    assert created["type"] == "assist:created"
    assert created["data"]["data"]["vehicle"]["model"] == "Golf"
    assert len(db.assist_requests) == 1


def test_call_signal_with_bad_payload_is_silent(client):
    with client.websocket_connect(ws_url("alice")) as ws:
        ws.send_json({"type": "call:accept", "data": {"channel": "x"}})
        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"


def test_register_push_token(client, db):
    with client.websocket_connect(ws_url("alice")) as ws:
        ws.send_json({"type": "registerPushToken", "data": {"token": "ExponentPushToken[a]"}})
        assert ws.receive_json() == {"type": "registerPushToken", "data": {"success": True}}
    assert db.profiles["alice"].push_token == "ExponentPushToken[a]"


def test_connection_registered_while_open(client, hub):
    with client.websocket_connect(ws_url("alice")) as ws:
        ws.send_json({"type": "ping"})
        ws.receive_json()
        assert hub.is_user_online("alice")
