"""WebSocket module for room-scoped real-time collaboration."""

from .calls import ActiveCall, CallError, CallKind, CallSessionManager, NoActiveCallError
from .context import EventContext, SnapshotLoader
from .handlers import (
    EVENT_HANDLERS,
    BroadcastResult,
    handle_room_analysis_updated,
    route_incoming_message,
)
from .lifecycle import handle_disconnect, handle_join, handle_leave
from .manager import ConnectionManager, MessageType, WebSocketConnection, build_message
from .registry import LiveParticipant, RoomRegistry
from .state import CollaborationState
from .task_board import GroupTask, GroupTaskBoard
from .voice import VoiceMessage, VoiceMessageBuffer

__all__ = [
    # Transport
    "ConnectionManager",
    "MessageType",
    "WebSocketConnection",
    "build_message",
    # State
    "ActiveCall",
    "CallError",
    "CallKind",
    "CallSessionManager",
    "CollaborationState",
    "GroupTask",
    "GroupTaskBoard",
    "LiveParticipant",
    "NoActiveCallError",
    "RoomRegistry",
    "VoiceMessage",
    "VoiceMessageBuffer",
    # Handlers
    "BroadcastResult",
    "EVENT_HANDLERS",
    "EventContext",
    "SnapshotLoader",
    "handle_disconnect",
    "handle_join",
    "handle_leave",
    "handle_room_analysis_updated",
    "route_incoming_message",
]
