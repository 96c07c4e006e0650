"""Room API endpoints: create a room, join by code, fetch its latest analysis."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.room import (
    RoomAnalysisResponse,
    RoomCreateResponse,
    RoomJoinRequest,
    RoomJoinResponse,
)
from ..services import room_service
from ..services.auth_service import get_current_user

router = APIRouter(prefix="/api/rooms", tags=["Rooms"])


@router.post(
    "",
    response_model=RoomCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a room",
    responses={503: {"description": "No free room code could be generated"}},
)
async def create_room(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoomCreateResponse:
    """Create a room hosted by the caller; the caller is its first participant."""
    room = await room_service.create_room(db, current_user.id)
    return RoomCreateResponse(
        message="Room created successfully",
        room_code=room.code,
        participants=room.participant_ids,
    )


@router.post(
    "/join",
    response_model=RoomJoinResponse,
    summary="Join a room by code",
    responses={404: {"description": "Room not found"}},
)
async def join_room(
    body: RoomJoinRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoomJoinResponse:
    """Add the caller to the room's participants. Joining twice is harmless."""
    added = await room_service.join_room(db, body.room_code, current_user.id)
    return RoomJoinResponse(
        message="Joined room successfully" if added else "Already in the room",
        room_code=body.room_code,
        already_member=not added,
    )


@router.get(
    "/{room_code}/analysis",
    response_model=RoomAnalysisResponse,
    summary="Latest document analysis shared with a room",
    responses={404: {"description": "No analysis for this room"}},
)
async def get_room_analysis(
    room_code: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoomAnalysisResponse:
    snapshot = await room_service.get_room_analysis(db, room_code)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No analysis for this room",
        )
    return RoomAnalysisResponse(
        room_code=snapshot.room_code,
        file_name=snapshot.file_name,
        analysis=snapshot.analysis,
        timestamp=snapshot.last_updated,
    )
