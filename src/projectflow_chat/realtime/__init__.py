"""Real-time delivery over WebSocket rooms."""

from .delivery import deliver_message_deleted, deliver_new_message
from .registry import ConnectionRegistry, get_connection_registry, user_room

__all__ = [
    "ConnectionRegistry",
    "get_connection_registry",
    "user_room",
    "deliver_new_message",
    "deliver_message_deleted",
]
