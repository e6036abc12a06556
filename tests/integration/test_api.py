"""Integration tests for the REST API (in-memory UoW via dependency override)."""
from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient

from roadside_chat.api.deps import get_hub, get_uow_factory
from roadside_chat.app import create_app
from roadside_chat.domain.value_objects.enums import AssistStatus
from roadside_chat.infrastructure.ws.manager import ConnectionManager
from tests.conftest import (
    FakeDB,
    fake_uow_factory,
    make_assist_request,
    make_conversation,
    make_token,
)


def auth(user_id: str = "alice", **kwargs) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, **kwargs)}"}


@pytest.fixture
def app_and_db(db: FakeDB):
    app = create_app()
    hub = ConnectionManager()
    app.dependency_overrides[get_uow_factory] = lambda: fake_uow_factory(db)
    app.dependency_overrides[get_hub] = lambda: hub
    return app, db


@pytest.fixture
def client(app_and_db):
    app, _ = app_and_db
    return TestClient(app, raise_server_exceptions=False)


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_list_conversations_empty(client):
    resp = client.get("/api/v1/conversations", headers=auth())
    assert resp.status_code == 200
    assert resp.json() == []


def test_list_conversations_camel_case(client, db):
    conv = db.add_conversation(make_conversation(("alice", "bob")))

    resp = client.get("/api/v1/conversations", headers=auth())

    assert resp.status_code == 200
    [item] = resp.json()
    assert item["id"] == str(conv.id)
    assert item["unreadCount"] == 0
    assert {p["id"] for p in item["participants"]} == {"alice", "bob"}


def test_messages_require_participant(client, db):
    conv = db.add_conversation(make_conversation(("alice", "bob")))

    assert client.get(f"/api/v1/conversations/{conv.id}/messages", headers=auth("alice")).json() == []
    assert client.get(f"/api/v1/conversations/{conv.id}/messages", headers=auth("carol")).status_code == 403
    assert client.get(f"/api/v1/conversations/{uuid.uuid4()}/messages", headers=auth()).status_code == 404


def test_missing_token_rejected(client):
    resp = client.get("/api/v1/conversations")
    assert resp.status_code in (401, 403)


def test_bad_token_is_401(client):
    resp = client.get("/api/v1/conversations", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


def test_pending_and_accept(client, db):
    request = make_assist_request("alice")
    db.assist_requests[request.id] = request

    pending = client.get("/api/v1/assist/pending", headers=auth("op-1", roles=["operator"]))
    assert pending.status_code == 200
    [item] = pending.json()
    assert item["id"] == str(request.id)
    assert item["location"]["coordinates"] == [13.4, 52.5]
    assert item["customerName"] == "Alice"

    accepted = client.post(f"/api/v1/assist/{request.id}/accept", headers=auth("op-1", roles=["operator"]))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == AssistStatus.ACCEPTED
    assert accepted.json()["assignedTo"] == "op-1"
    assert len(db.conversations) == 1

    again = client.post(f"/api/v1/assist/{request.id}/accept", headers=auth("op-2", roles=["operator"]))
    assert again.status_code == 409
    assert again.json()["detail"] == "Already processed"


def test_accept_unknown_request_is_404(client):
    resp = client.post(f"/api/v1/assist/{uuid.uuid4()}/accept", headers=auth("op-1"))
    assert resp.status_code == 404
