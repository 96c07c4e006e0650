"""Room persistence: short-code generation, membership and analysis snapshots."""

import logging
import random
import string
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import settings
from ..database import async_session_maker
from ..models.room import Room, RoomMember
from ..models.room_analysis import RoomAnalysis

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits

_rng = random.SystemRandom()


def generate_room_code(length: Optional[int] = None) -> str:
    """Random short code such as 'AB12CD'."""
    length = length or settings.room_code_length
    return "".join(_rng.choice(ROOM_CODE_ALPHABET) for _ in range(length))


async def get_room_by_code(db: AsyncSession, room_code: str) -> Optional[Room]:
    result = await db.execute(select(Room).where(Room.code == room_code))
    return result.scalar_one_or_none()


async def create_room(db: AsyncSession, host_id: UUID) -> Room:
    """
    Create a room hosted by ``host_id`` with a fresh unique code.

    Raises:
        HTTPException: 503 if no unused code was found
    """
    for attempt in range(settings.room_code_max_attempts):
        code = generate_room_code()
        if await get_room_by_code(db, code) is None:
            break
        logger.debug(f"Room code collision on attempt {attempt + 1}: {code}")
    else:
        logger.error("Could not generate a unique room code")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not allocate a room code, please retry",
        )

    room = Room(code=code, host_id=host_id)
    room.members = [RoomMember(user_id=host_id)]
    db.add(room)
    await db.flush()

    logger.info(f"Room {code} created by {host_id}")
    return room


async def join_room(db: AsyncSession, room_code: str, user_id: UUID) -> bool:
    """
    Add ``user_id`` to a room's persisted participants.

    Returns:
        True if the user was added, False if already a member

    Raises:
        HTTPException: 404 if the room does not exist
    """
    room = await get_room_by_code(db, room_code)
    if room is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Room not found",
        )

    existing = await db.execute(
        select(RoomMember.id).where(
            RoomMember.room_id == room.id,
            RoomMember.user_id == user_id,
        )
    )
    if existing.first() is not None:
        return False

    db.add(RoomMember(room_id=room.id, user_id=user_id))
    await db.flush()
    return True


async def get_room_analysis(db: AsyncSession, room_code: str) -> Optional[RoomAnalysis]:
    result = await db.execute(select(RoomAnalysis).where(RoomAnalysis.room_code == room_code))
    return result.scalar_one_or_none()


async def upsert_room_analysis(
    db: AsyncSession,
    room_code: str,
    file_name: Optional[str],
    analysis: dict[str, Any],
) -> RoomAnalysis:
    """Insert or replace the latest analysis for a room."""
    snapshot = await get_room_analysis(db, room_code)
    if snapshot is None:
        snapshot = RoomAnalysis(room_code=room_code)
        db.add(snapshot)

    snapshot.file_name = file_name
    snapshot.analysis = analysis
    snapshot.last_updated = datetime.utcnow()
    await db.flush()
    return snapshot


def make_snapshot_loader(session_maker: async_sessionmaker = async_session_maker):
    """
    Build the catch-up loader used by the join handler.

    The loader opens its own short-lived session, since it runs outside any
    HTTP request.
    """

    async def load_room_snapshot(room_code: str) -> Optional[dict[str, Any]]:
        async with session_maker() as session:
            snapshot = await get_room_analysis(session, room_code)
            return snapshot.to_event_payload() if snapshot else None

    return load_room_snapshot
