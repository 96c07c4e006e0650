"""Connection lifecycle: join, explicit leave and disconnect cleanup.

A connection moves CONNECTED -> JOINED(room) -> DISCONNECTED. Join and
leave keep the room registry, the socket's room subscriptions and any call
membership consistent; disconnect runs the same cleanup for every room the
connection could still be part of.
"""

import logging
from typing import Any

from .calls import CallLeaveResult
from .context import EventContext
from .manager import MessageType

logger = logging.getLogger(__name__)


def get_str(data: dict[str, Any], key: str) -> str | None:
    """Return a non-empty string field, or None."""
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


async def broadcast_participants(ctx: EventContext, room_code: str) -> None:
    await ctx.emit_to_room(
        room_code,
        MessageType.PARTICIPANTS,
        ctx.state.registry.list_names(room_code),
    )


async def announce_call_leave(ctx: EventContext, result: CallLeaveResult) -> None:
    """Tell the room a connection left its call, and that the call ended if it did."""
    if not result.removed:
        return
    await ctx.emit_to_room(
        result.room_code,
        MessageType.USER_LEFT_CALL,
        {"roomCode": result.room_code, "connectionId": ctx.connection_id},
        include_self=False,
    )
    if result.ended:
        await ctx.emit_to_room(
            result.room_code,
            MessageType.CALL_ENDED,
            {"roomCode": result.room_code},
        )


async def handle_join(ctx: EventContext, data: dict[str, Any]) -> None:
    """
    Join a room under a display name.

    Everyone in the room gets the new participant list; only the joining
    connection gets the latest analysis snapshot.
    """
    room_code = get_str(data, "roomCode")
    display_name = get_str(data, "displayName")
    if not room_code or not display_name:
        logger.warning(f"Dropping join without roomCode/displayName from {ctx.connection_id}")
        return

    async with ctx.state.lock:
        await ctx.manager.subscribe(ctx.connection, room_code)
        ctx.state.registry.join(room_code, ctx.connection_id, display_name)
        await ctx.emit_to_room(
            room_code,
            MessageType.NOTICE,
            f"{display_name} joined the room",
            include_self=False,
        )
        await broadcast_participants(ctx, room_code)

    # Snapshot read happens outside the lock so a slow database never
    # stalls other rooms.
    try:
        snapshot = await ctx.snapshot_loader(room_code)
    except Exception as e:
        logger.error(f"[ROOM {room_code}] Failed to load latest analysis: {e}")
        return

    if snapshot:
        await ctx.reply(MessageType.ROOM_ANALYSIS_UPDATED, snapshot)
        logger.info(f"[ROOM {room_code}] Sent latest analysis to {display_name}")


async def handle_leave(ctx: EventContext, data: dict[str, Any]) -> None:
    """Leave a room explicitly without closing the socket."""
    room_code = get_str(data, "roomCode")
    if not room_code:
        return

    async with ctx.state.lock:
        call_result = ctx.state.calls.leave(room_code, ctx.connection_id)
        await ctx.manager.unsubscribe(ctx.connection, room_code)
        await announce_call_leave(ctx, call_result)

        removed = ctx.state.registry.leave(room_code, ctx.connection_id)
        if removed is None:
            return

        logger.info(f"[LEAVE] {removed.display_name} left room {room_code}")
        await ctx.emit_to_room(
            room_code, MessageType.NOTICE, f"{removed.display_name} left the room"
        )
        await broadcast_participants(ctx, room_code)


async def handle_disconnect(ctx: EventContext) -> None:
    """
    Clean up after a closed or dropped connection.

    Removes the connection from every active call and every room roster,
    re-announcing state to each room it was actually live in.
    """
    async with ctx.state.lock:
        await ctx.manager.disconnect(ctx.connection)

        for result in ctx.state.calls.remove_from_all_calls(ctx.connection_id):
            await announce_call_leave(ctx, result)

        for room_code in ctx.state.registry.room_codes():
            removed = ctx.state.registry.leave(room_code, ctx.connection_id)
            if removed is None:
                continue

            logger.info(f"[LEAVE] {removed.display_name} left room {room_code}")
            await ctx.emit_to_room(
                room_code, MessageType.NOTICE, f"{removed.display_name} left the room"
            )
            await broadcast_participants(ctx, room_code)
