"""Room membership registry for live WebSocket connections.

Every accepted socket is registered under a small integer id handed out by
the registry. Rooms are plain string keys mapping to sets of those ids. The
registry is rebuilt empty when the process starts: clients that reconnect get
a new id and must join their rooms again.

This implementation is designed for a single event loop and is not
thread-safe.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Anything that can receive a JSON event (a Starlette ``WebSocket``)."""

    async def send_json(self, data: Any, mode: str = "text") -> None: ...


def user_room(user_id: int | str) -> str:
    """Return the personal notification room id for a user."""
    return f"user:{user_id}"


@dataclass
class Connection:
    """A live connection and the rooms it has joined."""

    connection_id: int
    sink: EventSink
    user_id: int | None = None
    rooms: set[str] = field(default_factory=set)


class ConnectionRegistry:
    """Tracks live connections and routes events to room members."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        # connection_id -> Connection
        self._connections: dict[int, Connection] = {}
        # room -> connection ids
        self._rooms: dict[str, set[int]] = {}

    def register(self, sink: EventSink, user_id: int | None = None) -> int:
        """Add a freshly accepted connection with no rooms and return its id."""
        connection_id = next(self._ids)
        self._connections[connection_id] = Connection(connection_id, sink, user_id)
        logger.debug("Registered connection %s for user %s", connection_id, user_id)
        return connection_id

    def join(self, connection_id: int, room: str) -> bool:
        """Add a connection to a room.

        Returns:
            True if the connection was newly added, False if it was already a
            member

        Raises:
            KeyError: If the connection is not registered
        """
        connection = self._connections[connection_id]
        if room in connection.rooms:
            return False
        connection.rooms.add(room)
        self._rooms.setdefault(room, set()).add(connection_id)
        logger.info("Connection %s joined room %s", connection_id, room)
        return True

    def leave_all(self, connection_id: int) -> set[str]:
        """Drop a connection and every room membership it held.

        Safe to call more than once; unknown ids are ignored.

        Returns:
            The rooms the connection had joined
        """
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return set()
        for room in connection.rooms:
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                del self._rooms[room]
        logger.debug("Connection %s left rooms %s", connection_id, sorted(connection.rooms))
        return set(connection.rooms)

    def members(self, room: str) -> set[int]:
        """Return the ids of the connections currently in ``room``."""
        return set(self._rooms.get(room, ()))

    def rooms_of(self, connection_id: int) -> set[str]:
        """Return the rooms a connection has joined."""
        connection = self._connections.get(connection_id)
        return set(connection.rooms) if connection else set()

    def connection_owner(self, connection_id: int) -> int | None:
        """Return the user a connection was registered for, or None if unknown."""
        connection = self._connections.get(connection_id)
        return connection.user_id if connection else None

    def is_connected(self, connection_id: int) -> bool:
        """Return True while the connection is registered."""
        return connection_id in self._connections

    @property
    def connection_count(self) -> int:
        """Number of live connections."""
        return len(self._connections)

    async def broadcast(
        self,
        room: str,
        event: str,
        data: Any,
        exclude_connection_id: int | None = None,
    ) -> int:
        """Send an event to every connection in ``room`` concurrently.

        Connections whose send fails are dropped from the registry.

        Returns:
            Number of connections the event was delivered to
        """
        targets = [
            self._connections[connection_id]
            for connection_id in self._rooms.get(room, ())
            if connection_id != exclude_connection_id and connection_id in self._connections
        ]
        if not targets:
            return 0

        envelope = {"event": event, "data": data}
        results = await asyncio.gather(
            *[self._safe_send(connection, envelope) for connection in targets]
        )

        for connection, delivered in zip(targets, results):
            if not delivered:
                self.leave_all(connection.connection_id)
                logger.debug("Removed dead connection %s", connection.connection_id)

        delivered_count = sum(1 for delivered in results if delivered)
        logger.debug("Event %s delivered to %d/%d in %s", event, delivered_count, len(targets), room)
        return delivered_count

    async def notify_user(self, user_id: int, event: str, data: Any) -> int:
        """Send an event to every connection that joined ``user_id``'s room."""
        return await self.broadcast(user_room(user_id), event, data)

    async def _safe_send(self, connection: Connection, envelope: dict[str, Any]) -> bool:
        try:
            await connection.sink.send_json(envelope)
            return True
        except Exception as exc:
            logger.debug("Failed to send to connection %s: %s", connection.connection_id, exc)
            return False


_registry = ConnectionRegistry()


def get_connection_registry() -> ConnectionRegistry:
    """Return the process-wide connection registry."""
    return _registry
