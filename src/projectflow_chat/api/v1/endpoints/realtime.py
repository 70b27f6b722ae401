"""WebSocket endpoint for live chat and personal notifications.

Protocol (all frames are JSON objects ``{"event": ..., "data": ...}``):

1. Client connects to ``/ws?token=<jwt>``; an invalid token closes the socket
   with code 1008.
   -> Server sends ``connected`` with ``connectionId`` and ``userId``.
2. Client sends ``joinGlobalChat``.
   -> Server sends ``joined`` with the room name; the connection now
   receives ``messageReceived`` and ``messageDeleted``.
3. Client sends ``joinUserRoom`` with ``{"userId": <own id>}`` or the bare id.
   -> Server sends ``joined``; the connection now receives
   ``newNotification`` for every message addressed to that user.
4. Anything else is answered with an ``error`` event; the socket stays open.

Rooms are not remembered across connections: after a reconnect the client
must join again.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import sessionmaker

from projectflow_chat.api.v1.dependencies import (
    RegistryDep,
    SessionFactoryDep,
    authenticate_token,
)
from projectflow_chat.core.settings import settings
from projectflow_chat.realtime.registry import ConnectionRegistry, user_room

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

EVENT_JOIN_GLOBAL = "joinGlobalChat"
EVENT_JOIN_USER = "joinUserRoom"


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"event": "error", "data": {"message": message}})


async def _join(
    websocket: WebSocket,
    registry: ConnectionRegistry,
    connection_id: int,
    room: str,
) -> None:
    registry.join(connection_id, room)
    await websocket.send_json({"event": "joined", "data": {"room": room}})

async def _handle_event(
    websocket: WebSocket,
    registry: ConnectionRegistry,
    connection_id: int,
    user_id: int,
    frame: Any,
) -> None:
    if not isinstance(frame, dict):
        await _send_error(websocket, "Frames must be JSON objects")
        return

    event = frame.get("event")
    data = frame.get("data")

    if event == EVENT_JOIN_GLOBAL:
        await _join(websocket, registry, connection_id, settings.global_chat_room)
    elif event == EVENT_JOIN_USER:
        # Accepts {"userId": n} or a bare id.
        requested = data.get("userId") if isinstance(data, dict) else data
        if requested is not None and str(requested) != str(user_id):
            await _send_error(websocket, "Cannot join another user's room")
            return
        await _join(websocket, registry, connection_id, user_room(user_id))
    else:
        await _send_error(websocket, f"Unknown event: {event}")


def _resolve_user_id(session_factory: sessionmaker, token: str | None) -> int | None:
    # The session is closed before the socket is accepted.
    with session_factory() as db:
        user = authenticate_token(db, token)
        return user.id if user is not None else None


@router.websocket("/ws")
async def chat_socket(
    websocket: WebSocket,
    session_factory: SessionFactoryDep,
    registry: RegistryDep,
    token: str | None = Query(None, description="Bearer token for the connecting user"),
) -> None:
    """Serve one client's live connection until it disconnects."""
    user_id = _resolve_user_id(session_factory, token)
    if user_id is None:
        logger.info("Rejected WebSocket connection with missing or invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    connection_id = registry.register(websocket, user_id)
    logger.info("Connection %s accepted for user %s", connection_id, user_id)

    try:
        await websocket.send_json(
            {"event": "connected", "data": {"connectionId": connection_id, "userId": user_id}}
        )
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await _send_error(websocket, "Malformed JSON")
                continue
            await _handle_event(websocket, registry, connection_id, user_id, frame)
    except WebSocketDisconnect:
        pass
    finally:
        rooms = registry.leave_all(connection_id)
        logger.info("Connection %s closed; left %d rooms", connection_id, len(rooms))
