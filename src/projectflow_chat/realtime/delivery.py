"""Fan-out of chat events to WebSocket rooms."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from projectflow_chat.core.settings import settings

from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

EVENT_MESSAGE_RECEIVED = "messageReceived"
EVENT_NEW_NOTIFICATION = "newNotification"
EVENT_MESSAGE_DELETED = "messageDeleted"


async def deliver_new_message(
    registry: ConnectionRegistry,
    payload: dict[str, Any],
    recipient_ids: Iterable[int],
    exclude_connection_id: int | None = None,
) -> None:
    """Push a persisted message to the global room and each recipient's room.

    Delivery is best effort. Clients that miss the push pick the message up
    through the unread-count poll.
    """
    live = await registry.broadcast(
        settings.global_chat_room,
        EVENT_MESSAGE_RECEIVED,
        payload,
        exclude_connection_id=exclude_connection_id,
    )
    notified = 0
    for recipient_id in recipient_ids:
        notified += await registry.notify_user(recipient_id, EVENT_NEW_NOTIFICATION, payload)
    logger.info(
        "Message %s fanned out to %d chat viewers and %d recipient connections",
        payload.get("id"),
        live,
        notified,
    )


async def deliver_message_deleted(
    registry: ConnectionRegistry,
    message_id: int,
    exclude_connection_id: int | None = None,
) -> None:
    """Tell chat viewers that a message has been removed."""
    await registry.broadcast(
        settings.global_chat_room,
        EVENT_MESSAGE_DELETED,
        {"id": message_id},
        exclude_connection_id=exclude_connection_id,
    )
