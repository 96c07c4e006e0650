"""WebSocket connection manager with room-based fan-out.

This module provides the transport side of the collaboration layer:
- Connection registration keyed by a per-socket connection id
- Room subscriptions for targeted broadcasts
- Point-to-point delivery for call signaling
- Graceful disconnect handling

Room state (who is live, active calls, tasks) is not kept here; see
``state.CollaborationState``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from fastapi import WebSocket

from ..config import settings

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """WebSocket message types."""

    # Connection events
    CONNECTED = "connected"
    ERROR = "error"
    PING = "ping"
    PONG = "pong"

    # Room lifecycle
    JOIN = "join"
    LEAVE = "leave"
    PARTICIPANTS = "participants"
    NOTICE = "message"

    # Chat
    CHAT = "chat"
    CHAT_RECEIVED = "chat-received"

    # Calls
    CALL_START = "call-start"
    CALL_JOIN = "call-join"
    CALL_LEAVE = "call-leave"
    CALL_STARTED = "call-started"
    CALL_JOINED = "call-joined"
    CALL_ENDED = "call-ended"
    CALL_ERROR = "call-error"
    USER_JOINED_CALL = "user-joined-call"
    USER_LEFT_CALL = "user-left-call"

    # WebRTC signaling (relayed point-to-point)
    SIGNAL_OFFER = "signal-offer"
    SIGNAL_ANSWER = "signal-answer"
    SIGNAL_ICE = "signal-ice"

    # Group tasks
    TASK_ADD = "task-add"
    TASK_TOGGLE = "task-toggle"
    TASK_DELETE = "task-delete"
    GROUP_TASKS_UPDATED = "group-tasks-updated"
    TASK_TOGGLED = "task-toggled"

    # Voice notes
    VOICE_MESSAGE = "voice-message"

    # Document analysis
    ROOM_ANALYSIS_UPDATED = "room-analysis-updated"


def build_message(message_type: MessageType, data: Any) -> dict[str, Any]:
    """Wrap a payload in the ``{"type", "data"}`` envelope."""
    return {"type": message_type.value, "data": data}


@dataclass
class WebSocketConnection:
    """Represents a WebSocket connection with its identity."""

    websocket: WebSocket
    connection_id: str = field(default_factory=lambda: uuid4().hex)
    user_id: Optional[UUID] = None
    connected_at: datetime = field(default_factory=datetime.utcnow)
    rooms: set[str] = field(default_factory=set)

    def __hash__(self) -> int:
        return hash(self.connection_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WebSocketConnection):
            return False
        return self.connection_id == other.connection_id


class ConnectionManager:
    """
    WebSocket connection manager with room subscriptions.

    Features:
    - Room-based connection grouping for targeted broadcasts
    - Connection-id lookup for point-to-point relay
    - Per-user connection cap for authenticated sockets
    - Failed sends are swallowed per connection so one dead socket never
      breaks a broadcast
    """

    def __init__(self) -> None:
        # Map of room_code -> set of connections
        self._rooms: dict[str, set[WebSocketConnection]] = {}
        # Map of connection_id -> connection object
        self._connections: dict[str, WebSocketConnection] = {}
        # Map of user_id -> set of connections
        self._user_connections: dict[UUID, set[WebSocketConnection]] = {}
        self._lock = asyncio.Lock()

    @property
    def total_connections(self) -> int:
        """Get total number of active connections."""
        return len(self._connections)

    @property
    def total_rooms(self) -> int:
        """Get total number of rooms with at least one subscribed socket."""
        return len(self._rooms)

    def get_room_count(self, room_code: str) -> int:
        """Get number of connections subscribed to a room."""
        return len(self._rooms.get(room_code, set()))

    def get_user_connections_count(self, user_id: UUID) -> int:
        """Get number of connections for a user."""
        return len(self._user_connections.get(user_id, set()))

    def get_connection(self, connection_id: str) -> Optional[WebSocketConnection]:
        """Look up a live connection by id."""
        return self._connections.get(connection_id)

    async def connect(
        self,
        websocket: WebSocket,
        user_id: Optional[UUID] = None,
    ) -> Optional[WebSocketConnection]:
        """
        Accept a WebSocket connection and register it.

        Args:
            websocket: The WebSocket instance
            user_id: The authenticated user's ID, if a token was supplied

        Returns:
            WebSocketConnection: The connection wrapper object, or None if rejected
        """
        if user_id is not None:
            current_connections = len(self._user_connections.get(user_id, set()))
            if current_connections >= settings.ws_max_connections_per_user:
                logger.warning(
                    f"Connection limit reached for user {user_id}: "
                    f"{current_connections}/{settings.ws_max_connections_per_user}"
                )
                await websocket.close(code=4029, reason="Too many connections")
                return None

        await websocket.accept()

        connection = WebSocketConnection(websocket=websocket, user_id=user_id)

        async with self._lock:
            self._connections[connection.connection_id] = connection
            if user_id is not None:
                self._user_connections.setdefault(user_id, set()).add(connection)

        logger.info(
            f"WebSocket connected: connection={connection.connection_id}, "
            f"user={user_id}, total_connections={self.total_connections}"
        )

        await self.send_personal(
            connection,
            build_message(
                MessageType.CONNECTED,
                {
                    "connectionId": connection.connection_id,
                    "userId": str(user_id) if user_id else None,
                    "connectedAt": connection.connected_at.isoformat(),
                },
            ),
        )

        return connection

    async def disconnect(self, connection: WebSocketConnection) -> None:
        """
        Forget a connection and drop all of its room subscriptions.

        Safe to call more than once.
        """
        async with self._lock:
            if self._connections.pop(connection.connection_id, None) is None:
                return

            if connection.user_id in self._user_connections:
                self._user_connections[connection.user_id].discard(connection)
                if not self._user_connections[connection.user_id]:
                    del self._user_connections[connection.user_id]

            for room_code in list(connection.rooms):
                self._discard_from_room(connection, room_code)

        logger.info(
            f"WebSocket disconnected: connection={connection.connection_id}, "
            f"total_connections={self.total_connections}"
        )

    async def subscribe(self, connection: WebSocketConnection, room_code: str) -> None:
        """Add a connection to a room's broadcast group."""
        async with self._lock:
            self._rooms.setdefault(room_code, set()).add(connection)
            connection.rooms.add(room_code)

    async def unsubscribe(self, connection: WebSocketConnection, room_code: str) -> None:
        """Remove a connection from a room's broadcast group."""
        async with self._lock:
            self._discard_from_room(connection, room_code)

    def _discard_from_room(self, connection: WebSocketConnection, room_code: str) -> None:
        if room_code in self._rooms:
            self._rooms[room_code].discard(connection)
            if not self._rooms[room_code]:
                del self._rooms[room_code]
        connection.rooms.discard(room_code)

    async def send_personal(
        self,
        connection: WebSocketConnection,
        message: dict[str, Any],
    ) -> bool:
        """
        Send a message to a specific connection.

        Returns:
            bool: True if sent successfully, False otherwise
        """
        try:
            await connection.websocket.send_json(message)
            return True
        except Exception as e:
            logger.debug(f"Send to {connection.connection_id} failed: {e}")
            return False

    async def send_to_connection(
        self,
        connection_id: str,
        message: dict[str, Any],
    ) -> bool:
        """
        Send a message to a connection by id.

        Unknown ids are a silent no-op (the peer may already be gone).
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        return await self.send_personal(connection, message)

    async def broadcast_to_room(
        self,
        room_code: str,
        message: dict[str, Any],
        exclude: Optional[WebSocketConnection] = None,
    ) -> int:
        """
        Broadcast a message to all connections subscribed to a room.

        Args:
            room_code: The room to broadcast to
            message: The message to send
            exclude: Optional connection to exclude from broadcast

        Returns:
            int: Number of successful sends
        """
        connections = self._rooms.get(room_code, set()).copy()

        if exclude:
            connections.discard(exclude)

        if not connections:
            return 0

        results = await asyncio.gather(
            *(self.send_personal(conn, message) for conn in connections),
            return_exceptions=True,
        )

        success_count = sum(1 for r in results if r is True)
        logger.debug(
            f"Broadcast {message.get('type')} to room {room_code}: "
            f"{success_count}/{len(connections)} successful"
        )
        return success_count

    async def close_all(self) -> None:
        """Close every open socket (used at shutdown)."""
        for connection in list(self._connections.values()):
            try:
                await connection.websocket.close(code=1001, reason="Server shutting down")
            except Exception as e:
                logger.debug(f"Close of {connection.connection_id} failed: {e}")
            await self.disconnect(connection)
