from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from roadside_chat.api.deps import HubDep, UoWFactory, UoWFactoryDep, VerifierDep
from roadside_chat.api.middleware.correlation_id import correlation_id_ctx
from roadside_chat.application.dto.assist import LocationDTO, VehicleDTO
from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.dto.views import failure, success
from roadside_chat.application.exceptions import AppError, ServerError
from roadside_chat.config import settings
from roadside_chat.domain.value_objects.enums import CallAction
from roadside_chat.infrastructure.ws.manager import ConnectionManager
from roadside_chat.infrastructure.ws.protocol import (
    KNOWN_EVENTS,
    AssistAccept,
    AssistCreate,
    AssistStatusUpdate,
    CallInvite,
    CallSignal,
    DeleteConversation,
    GetConversations,
    GetMessages,
    JoinOperators,
    MarkAsRead,
    NewConversation,
    NewMessage,
    Ping,
    RegisterPushToken,
    WsOutbound,
    inbound_adapter,
)
from roadside_chat.services import (
    assist_service,
    call_service,
    chat_service,
    message_service,
    profile_service,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

AUTH_FAILED_CLOSE_CODE = 4001
_SILENT_EVENTS = frozenset(a.value for a in CallAction)


@dataclass(slots=True)
class _Session:
    """Per-connection state handed to every event handler."""

    websocket: WebSocket
    connection_id: str
    principal: Principal
    hub: ConnectionManager
    uow_factory: UoWFactory

    async def reply(self, event_type: str, data: dict[str, Any]) -> None:
        await self.websocket.send_text(WsOutbound(type=event_type, data=data).model_dump_json())


def _extract_token(websocket: WebSocket, token: str | None) -> str | None:
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


@router.websocket("/ws")
async def ws_endpoint(
    websocket: WebSocket,
    hub: HubDep,
    uow_factory: UoWFactoryDep,
    verifier: VerifierDep,
    token: str | None = Query(None),
) -> None:
    raw_token = _extract_token(websocket, token)
    try:
        if not raw_token:
            raise AppError("Missing token")
        principal = await verifier.verify(raw_token)
    except AppError as exc:
        logger.info("WS auth failed: %s", exc.detail)
        await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason="Authentication failed")
        return

    connection_id = uuid.uuid4().hex
    correlation_id_ctx.set(connection_id)
    await websocket.accept()
    hub.register(
        connection_id,
        principal.user_id,
        websocket,
        display_name=principal.name,
        avatar=principal.avatar,
    )
    session = _Session(websocket, connection_id, principal, hub, uow_factory)

    try:
        async with uow_factory() as uow:
            joined = await chat_service.join_user_rooms(connection_id, principal.user_id, uow, hub)
        logger.info("User %s connected, joined %d conversation rooms", principal.user_id, joined)
    except Exception:
        logger.exception("Joining conversation rooms failed for %s", principal.user_id)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{connection_id}",
    )
    try:
        while True:
            raw = await websocket.receive_text()
            await _dispatch(session, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", principal.user_id)
    finally:
        heartbeat_task.cancel()
        hub.unregister(connection_id)
        logger.info("User %s disconnected", principal.user_id)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await ws.send_text(WsOutbound(type="pong", data={}).model_dump_json())
    except asyncio.CancelledError:
        pass
    except Exception as exc:  # noqa: BLE001
        logger.debug("Heartbeat stopped: %s", exc)


def _peek_type(raw: str) -> str | None:
    try:
        body = json.loads(raw)
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("type"), str):
        return body["type"]
    return None


async def _dispatch(session: _Session, raw: str) -> None:
    try:
        envelope = inbound_adapter.validate_json(raw)
    except ValidationError as exc:
        event_type = _peek_type(raw)
        if event_type in _SILENT_EVENTS:
            logger.info("%s dropped: %d validation error(s)", event_type, exc.error_count())
            return
        if event_type in KNOWN_EVENTS:
            await session.reply(event_type, failure("Invalid payload"))
        else:
            await session.reply("error", failure(f"Unknown event: {event_type}" if event_type else "Invalid payload"))
        return

    handler = _HANDLERS[type(envelope)]
    try:
        await handler(session, envelope)
    except AppError as exc:
        if envelope.type in _SILENT_EVENTS:
            logger.info("%s dropped: %s", envelope.type, exc.detail)
            return
        await session.reply(envelope.type, failure(exc.detail))
    except WebSocketDisconnect:
        raise
    except Exception:
        logger.exception("WS handler %s failed for %s", envelope.type, session.principal.user_id)
        if envelope.type not in _SILENT_EVENTS:
            await session.reply(envelope.type, failure(ServerError.default_detail))


# -- handlers -------------------------------------------------------------------


async def _get_conversations(s: _Session, msg: GetConversations) -> None:
    async with s.uow_factory() as uow:
        views = await chat_service.list_conversations(s.principal, uow)
    await s.reply(msg.type, success(views))


async def _new_conversation(s: _Session, msg: NewConversation) -> None:
    async with s.uow_factory() as uow:
        view, created = await chat_service.create_conversation(
            s.principal,
            msg.data.type,
            msg.data.participants,
            uow,
            s.hub,
            name=msg.data.name,
            avatar=msg.data.avatar,
        )
    if not created:
        await s.reply(msg.type, success(view))


async def _delete_conversation(s: _Session, msg: DeleteConversation) -> None:
    cid = msg.data.conversation_id
    async with s.uow_factory() as uow:
        await chat_service.delete_conversation(s.principal, cid, uow, s.hub)
    await s.reply(msg.type, success(conversationId=str(cid)))


async def _get_messages(s: _Session, msg: GetMessages) -> None:
    async with s.uow_factory() as uow:
        views = await message_service.get_messages(s.principal, msg.data.conversation_id, uow)
    await s.reply(msg.type, success(views))


async def _new_message(s: _Session, msg: NewMessage) -> None:
    async with s.uow_factory() as uow:
        await message_service.send_message(
            s.principal,
            msg.data.conversation_id,
            msg.data.content,
            msg.data.attachment,
            uow,
            s.hub,
        )


async def _mark_as_read(s: _Session, msg: MarkAsRead) -> None:
    async with s.uow_factory() as uow:
        await message_service.mark_as_read(s.principal, msg.data.conversation_id, uow, s.hub)
    await s.reply(msg.type, success())


async def _call_invite(s: _Session, msg: CallInvite) -> None:
    caller = msg.data.from_.model_dump() if msg.data.from_ else None
    async with s.uow_factory() as uow:
        await call_service.invite(
            s.principal,
            msg.data.conversation_id,
            msg.data.channel,
            uow,
            s.hub,
            kind=msg.data.kind,
            caller=caller,
        )
    await s.reply(msg.type, success())


async def _call_signal(s: _Session, msg: CallSignal) -> None:
    async with s.uow_factory() as uow:
        await call_service.relay_signal(
            CallAction(msg.type), s.principal, msg.data.conversation_id, msg.data.channel, uow, s.hub,
        )


async def _assist_create(s: _Session, msg: AssistCreate) -> None:
    vehicle, location = msg.data.vehicle, msg.data.location
    async with s.uow_factory() as uow:
        request = await assist_service.create_assist_request(
            s.principal,
            VehicleDTO(model=vehicle.model, plate=vehicle.plate, notes=vehicle.notes),
            LocationDTO(
                lat=location.lat,
                lng=location.lng,
                address=location.address,
                accuracy=location.accuracy,
            ),
            uow,
        )
    ack = success({"id": str(request.id)})
    await s.reply("assistRequest", ack)
    if msg.type == "assist:create":
        await s.reply(msg.type, ack)
    await assist_service.announce_assist_request(request, s.principal, s.hub)


async def _join_operators(s: _Session, msg: JoinOperators) -> None:
    assist_service.join_operators(s.principal, s.connection_id, s.hub)


async def _assist_accept(s: _Session, msg: AssistAccept) -> None:
    async with s.uow_factory() as uow:
        accepted = await assist_service.accept_assist_request(s.principal, msg.data.id, uow, s.hub)
    await s.reply(msg.type, success({"id": str(accepted.id)}))


async def _assist_status(s: _Session, msg: AssistStatusUpdate) -> None:
    async with s.uow_factory() as uow:
        updated = await assist_service.update_assist_status(
            s.principal, msg.data.id, msg.data.status, uow, s.hub,
        )
    await s.reply(msg.type, success({"id": str(updated.id), "status": updated.status}))


async def _register_push_token(s: _Session, msg: RegisterPushToken) -> None:
    async with s.uow_factory() as uow:
        await profile_service.register_push_token(s.principal, msg.data.token, uow)
    await s.reply(msg.type, success())


async def _ping(s: _Session, msg: Ping) -> None:
    await s.reply("pong", {})


_HANDLERS: dict[type, Callable[[_Session, Any], Awaitable[None]]] = {
    GetConversations: _get_conversations,
    NewConversation: _new_conversation,
    DeleteConversation: _delete_conversation,
    GetMessages: _get_messages,
    NewMessage: _new_message,
    MarkAsRead: _mark_as_read,
    CallInvite: _call_invite,
    CallSignal: _call_signal,
    AssistCreate: _assist_create,
    JoinOperators: _join_operators,
    AssistAccept: _assist_accept,
    AssistStatusUpdate: _assist_status,
    RegisterPushToken: _register_push_token,
    Ping: _ping,
}
