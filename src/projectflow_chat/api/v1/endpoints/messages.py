# src/projectflow_chat/api/v1/endpoints/messages.py
"""Global chat message endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, Query, status

from projectflow_chat.api.v1.dependencies import CurrentUserDep, MessageStoreDep, RegistryDep
from projectflow_chat.models import Message
from projectflow_chat.realtime.delivery import deliver_message_deleted, deliver_new_message
from projectflow_chat.realtime.registry import ConnectionRegistry
from projectflow_chat.schemas.message import MessageCreate, MessageResponse, UnreadCountResponse
from projectflow_chat.services.messages import (
    MessageAuthorizationError,
    MessageNotFoundError,
    MessageStore,
    MessageValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])

ConnectionIdHeader = Annotated[
    int | None,
    Header(description="WebSocket connection id of the sender, excluded from the echo"),
]


def _serialize_message(store: MessageStore, message: Message) -> MessageResponse:
    return MessageResponse.from_message(message, store.readable_text(message))


def _own_connection(
    registry: ConnectionRegistry,
    connection_id: int | None,
    user_id: int,
) -> int | None:
    """Return ``connection_id`` only if it belongs to ``user_id``."""
    if connection_id is None:
        return None
    if registry.connection_owner(connection_id) != user_id:
        logger.debug(
            "Ignoring X-Connection-Id %s not owned by user %s", connection_id, user_id
        )
        return None
    return connection_id


@router.get("/", response_model=list[MessageResponse])
async def list_messages(
    current_user: CurrentUserDep,
    store: MessageStoreDep,
    limit: int | None = Query(None, ge=1, le=100, description="Maximum number of messages"),
) -> list[MessageResponse]:
    """Return the most recent messages, newest first, marking them read."""
    messages = store.list_recent(current_user.id, limit)
    return [_serialize_message(store, message) for message in messages]


@router.get("/unread", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: CurrentUserDep,
    store: MessageStoreDep,
) -> UnreadCountResponse:
    """Return how many messages addressed to the caller are still unread."""
    return UnreadCountResponse(count=store.count_unread(current_user.id))


@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_data: MessageCreate,
    current_user: CurrentUserDep,
    store: MessageStoreDep,
    registry: RegistryDep,
    x_connection_id: ConnectionIdHeader = None,
) -> MessageResponse:
    """Persist a message, then push it to chat viewers and every recipient.

    The response is built from the authored text, so the sender always gets
    back exactly what was submitted.
    """
    try:
        message = store.create_message(current_user.id, message_data.text)
    except MessageValidationError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err

    response = MessageResponse.from_message(message, message.text)
    await deliver_new_message(
        registry,
        response.model_dump(mode="json"),
        sorted(message.recipient_ids),
        exclude_connection_id=_own_connection(registry, x_connection_id, current_user.id),
    )
    return response


@router.put("/{message_id}/read")
async def mark_message_read(
    message_id: int,
    current_user: CurrentUserDep,
    store: MessageStoreDep,
) -> dict[str, object]:
    """Mark a message as read by the caller."""
    try:
        store.mark_read(message_id, current_user.id)
    except MessageNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(err),
        ) from err
    except MessageAuthorizationError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(err),
        ) from err

    return {"status": "marked_as_read", "message_id": message_id}


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    current_user: CurrentUserDep,
    store: MessageStoreDep,
    registry: RegistryDep,
    x_connection_id: ConnectionIdHeader = None,
) -> dict[str, object]:
    """Delete a message. Only its sender or an administrator may do so."""
    try:
        store.delete_message(message_id, current_user.id, current_user.is_admin)
    except MessageNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(err),
        ) from err
    except MessageAuthorizationError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(err),
        ) from err

    await deliver_message_deleted(
        registry,
        message_id,
        exclude_connection_id=_own_connection(registry, x_connection_id, current_user.id),
    )
    return {"status": "message_removed", "message_id": message_id}
