"""WebSocket event handlers and the dispatch table that routes to them."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from .calls import CallKind, NoActiveCallError
from .context import EventContext
from .lifecycle import announce_call_leave, get_str, handle_join, handle_leave
from .manager import ConnectionManager, MessageType, build_message
from .task_board import GroupTask
from .voice import VoiceMessage

logger = logging.getLogger(__name__)

UNKNOWN_SENDER = "Unknown"

Handler = Callable[[EventContext, dict[str, Any]], Awaitable[None]]


@dataclass
class BroadcastResult:
    """Result of a broadcast operation."""

    room_id: str
    recipients: int
    message_type: str
    success: bool


def sender_name(ctx: EventContext, room_code: str) -> str:
    return ctx.state.registry.display_name_for(room_code, ctx.connection_id) or UNKNOWN_SENDER


# =============================================================================
# Chat
# =============================================================================


async def handle_chat(ctx: EventContext, data: dict[str, Any]) -> None:
    """Broadcast a chat message to the whole room, sender included."""
    room_code = get_str(data, "roomCode")
    text = data.get("text")
    if not room_code or not isinstance(text, str) or not text:
        return

    async with ctx.state.lock:
        record = {
            "id": ctx.state.next_message_id(),
            "roomCode": room_code,
            "sender": sender_name(ctx, room_code),
            "content": text,
            "timestamp": datetime.utcnow().isoformat(),
        }
        logger.debug(f"[CHAT {room_code}] {record['sender']}: {len(text)} chars")
        await ctx.emit_to_room(room_code, MessageType.CHAT_RECEIVED, record)


# =============================================================================
# Calls
# =============================================================================


async def handle_call_start(ctx: EventContext, data: dict[str, Any]) -> None:
    room_code = get_str(data, "roomCode")
    kind_str = get_str(data, "kind")
    if not room_code or not kind_str:
        return
    try:
        kind = CallKind(kind_str)
    except ValueError:
        logger.warning(f"Invalid call kind: {kind_str}")
        return

    async with ctx.state.lock:
        if room_code not in ctx.state.registry:
            logger.debug(f"Dropping call-start for room {room_code} with no live participants")
            return
        initiator = sender_name(ctx, room_code)
        call, _ = ctx.state.calls.start(room_code, kind, ctx.connection_id, initiator)
        await ctx.emit_to_room(
            room_code,
            MessageType.CALL_STARTED,
            {"roomCode": room_code, "kind": call.kind.value, "initiator": call.initiator},
            include_self=False,
        )


async def handle_call_join(ctx: EventContext, data: dict[str, Any]) -> None:
    room_code = get_str(data, "roomCode")
    if not room_code:
        return

    async with ctx.state.lock:
        try:
            call = ctx.state.calls.join(room_code, ctx.connection_id)
        except NoActiveCallError as e:
            await ctx.reply(MessageType.CALL_ERROR, {"roomCode": room_code, "message": str(e)})
            return

        await ctx.emit_to_room(
            room_code,
            MessageType.USER_JOINED_CALL,
            {"roomCode": room_code, "connectionId": ctx.connection_id},
            include_self=False,
        )
        await ctx.reply(MessageType.CALL_JOINED, call.to_dict())


async def handle_call_leave(ctx: EventContext, data: dict[str, Any]) -> None:
    room_code = get_str(data, "roomCode")
    if not room_code:
        return

    async with ctx.state.lock:
        result = ctx.state.calls.leave(room_code, ctx.connection_id)
        await announce_call_leave(ctx, result)


async def handle_signal(ctx: EventContext, data: dict[str, Any], message_type: MessageType) -> None:
    """Relay an offer/answer/ICE payload to exactly one target connection."""
    target_id = get_str(data, "targetConnectionId")
    if not target_id:
        return

    delivered = await ctx.emit_to_connection(
        target_id,
        message_type,
        {
            "roomCode": data.get("roomCode"),
            "payload": data.get("payload"),
            "senderConnectionId": ctx.connection_id,
        },
    )
    if not delivered:
        logger.debug(f"{message_type.value} to {target_id} not delivered")


def _signal_handler(message_type: MessageType) -> Handler:
    async def handler(ctx: EventContext, data: dict[str, Any]) -> None:
        await handle_signal(ctx, data, message_type)

    handler.__name__ = f"handle_{message_type.name.lower()}"
    return handler


# =============================================================================
# Group tasks
# =============================================================================


async def handle_task_add(ctx: EventContext, data: dict[str, Any]) -> None:
    room_code = get_str(data, "roomCode")
    payload = data.get("task")
    if not room_code or not isinstance(payload, dict):
        return

    async with ctx.state.lock:
        try:
            task = GroupTask.from_payload(payload, created_by=sender_name(ctx, room_code))
        except ValueError as e:
            logger.warning(f"[TASK {room_code}] Dropping task: {e}")
            return

        tasks = ctx.state.tasks.add(room_code, task)
        await ctx.emit_to_room(
            room_code,
            MessageType.GROUP_TASKS_UPDATED,
            [t.to_dict() for t in tasks],
        )


async def handle_task_toggle(ctx: EventContext, data: dict[str, Any]) -> None:
    room_code = get_str(data, "roomCode")
    task_id = data.get("taskId")
    completed = data.get("completed")
    if not room_code or task_id in (None, "") or not isinstance(completed, bool):
        return

    async with ctx.state.lock:
        task = ctx.state.tasks.toggle(room_code, task_id, completed)
        if task is None:
            return
        await ctx.emit_to_room(
            room_code,
            MessageType.TASK_TOGGLED,
            {"taskId": task.id, "completed": task.completed, "type": "group"},
        )


async def handle_task_delete(ctx: EventContext, data: dict[str, Any]) -> None:
    room_code = get_str(data, "roomCode")
    task_id = data.get("taskId")
    if not room_code or task_id in (None, ""):
        return

    async with ctx.state.lock:
        tasks = ctx.state.tasks.delete(room_code, task_id)
        if tasks is None:
            return
        await ctx.emit_to_room(
            room_code,
            MessageType.GROUP_TASKS_UPDATED,
            [t.to_dict() for t in tasks],
        )


# =============================================================================
# Voice notes
# =============================================================================


async def handle_voice_message(ctx: EventContext, data: dict[str, Any]) -> None:
    room_code = get_str(data, "roomCode")
    audio = data.get("audio")
    if not room_code or not isinstance(audio, str) or not audio:
        return

    duration = data.get("duration")
    if not isinstance(duration, (int, float)) or isinstance(duration, bool):
        duration = None

    async with ctx.state.lock:
        if room_code not in ctx.state.registry:
            return
        message = ctx.state.voice.append(
            room_code,
            VoiceMessage(
                id=ctx.state.next_message_id(),
                sender=sender_name(ctx, room_code),
                audio=audio,
                duration=duration,
            ),
        )
        logger.info(f"[VOICE {room_code}] {message.sender} sent voice message")
        await ctx.emit_to_room(room_code, MessageType.VOICE_MESSAGE, message.to_dict())


# =============================================================================
# Dispatch
# =============================================================================


EVENT_HANDLERS: dict[str, Handler] = {
    MessageType.JOIN.value: handle_join,
    MessageType.LEAVE.value: handle_leave,
    MessageType.CHAT.value: handle_chat,
    MessageType.CALL_START.value: handle_call_start,
    MessageType.CALL_JOIN.value: handle_call_join,
    MessageType.CALL_LEAVE.value: handle_call_leave,
    MessageType.SIGNAL_OFFER.value: _signal_handler(MessageType.SIGNAL_OFFER),
    MessageType.SIGNAL_ANSWER.value: _signal_handler(MessageType.SIGNAL_ANSWER),
    MessageType.SIGNAL_ICE.value: _signal_handler(MessageType.SIGNAL_ICE),
    MessageType.TASK_ADD.value: handle_task_add,
    MessageType.TASK_TOGGLE.value: handle_task_toggle,
    MessageType.TASK_DELETE.value: handle_task_delete,
    MessageType.VOICE_MESSAGE.value: handle_voice_message,
}

# Everything except join/leave needs the connection to be in a room first.
OPEN_EVENTS = frozenset({MessageType.JOIN.value, MessageType.LEAVE.value})


async def route_incoming_message(ctx: EventContext, message: dict[str, Any]) -> None:
    """
    Route one incoming WebSocket message to its handler.

    Malformed or unknown messages are logged and dropped. A handler that
    raises is logged; the exception never reaches the receive loop.
    """
    message_type = message.get("type")

    if message_type == MessageType.PING.value:
        await ctx.reply(MessageType.PONG, {})
        return

    handler = EVENT_HANDLERS.get(message_type) if isinstance(message_type, str) else None
    if handler is None:
        logger.debug(f"Unhandled message type: {message_type} from {ctx.connection_id}")
        return

    data = message.get("data")
    if not isinstance(data, dict):
        logger.debug(f"Dropping {message_type} without a data object from {ctx.connection_id}")
        return

    if message_type not in OPEN_EVENTS and not ctx.is_joined:
        logger.debug(f"Dropping {message_type} from {ctx.connection_id}: not in a room")
        return

    logger.debug(f"Routing message: connection={ctx.connection_id}, type={message_type}")

    try:
        await handler(ctx, data)
    except Exception:
        logger.exception(f"Handler for {message_type} failed (connection={ctx.connection_id})")


# =============================================================================
# Server-originated broadcasts
# =============================================================================


async def handle_room_analysis_updated(
    room_code: str,
    file_name: Optional[str],
    analysis: dict[str, Any],
    connection_manager: ConnectionManager,
    timestamp: Optional[datetime] = None,
) -> BroadcastResult:
    """
    Push a freshly saved document analysis to everyone in the room.

    Returns:
        BroadcastResult: Result of the broadcast operation
    """
    message = build_message(
        MessageType.ROOM_ANALYSIS_UPDATED,
        {
            "roomCode": room_code,
            "fileName": file_name,
            "analysis": analysis,
            "timestamp": (timestamp or datetime.utcnow()).isoformat(),
        },
    )
    recipients = await connection_manager.broadcast_to_room(room_code, message)

    logger.info(f"Emitted room-analysis-updated to room {room_code}, recipients={recipients}")

    return BroadcastResult(
        room_id=room_code,
        recipients=recipients,
        message_type=MessageType.ROOM_ANALYSIS_UPDATED.value,
        success=True,
    )
