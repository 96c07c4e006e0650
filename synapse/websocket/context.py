"""Per-event context handed to every real-time handler."""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from .manager import ConnectionManager, MessageType, WebSocketConnection, build_message
from .state import CollaborationState

# room_code -> latest persisted analysis payload, or None
SnapshotLoader = Callable[[str], Awaitable[Optional[dict[str, Any]]]]


async def _no_snapshot(room_code: str) -> Optional[dict[str, Any]]:
    return None


@dataclass
class EventContext:
    """
    What a handler may touch: the state store, the sending connection and
    the two delivery capabilities (room-wide and single connection).
    """

    state: CollaborationState
    connection: WebSocketConnection
    manager: ConnectionManager
    snapshot_loader: SnapshotLoader = _no_snapshot

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id

    @property
    def is_joined(self) -> bool:
        """True once the connection has joined at least one room."""
        return bool(self.connection.rooms)

    async def emit_to_room(
        self,
        room_code: str,
        message_type: MessageType,
        data: Any,
        include_self: bool = True,
    ) -> int:
        return await self.manager.broadcast_to_room(
            room_code,
            build_message(message_type, data),
            exclude=None if include_self else self.connection,
        )

    async def emit_to_connection(
        self,
        connection_id: str,
        message_type: MessageType,
        data: Any,
    ) -> bool:
        return await self.manager.send_to_connection(
            connection_id, build_message(message_type, data)
        )

    async def reply(self, message_type: MessageType, data: Any) -> bool:
        """Send to the connection that raised the event."""
        return await self.manager.send_personal(
            self.connection, build_message(message_type, data)
        )
