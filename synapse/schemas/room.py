"""Pydantic schemas for rooms and room analysis snapshots."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RoomCreateResponse(BaseModel):
    """Returned after a room is created."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    room_code: str = Field(..., alias="roomCode", description="Short code to share")
    participants: list[UUID] = Field(default_factory=list)


class RoomJoinRequest(BaseModel):
    """Body of the join-room request."""

    model_config = ConfigDict(populate_by_name=True)

    room_code: str = Field(
        ...,
        alias="roomCode",
        min_length=1,
        max_length=16,
        examples=["AB12CD"],
    )


class RoomJoinResponse(BaseModel):
    """Result of joining a room (idempotent)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    room_code: str = Field(..., alias="roomCode")
    already_member: bool = Field(False, alias="alreadyMember")


class RoomAnalysisResponse(BaseModel):
    """Latest persisted analysis snapshot for a room."""

    model_config = ConfigDict(populate_by_name=True)

    room_code: str = Field(..., alias="roomCode")
    file_name: Optional[str] = Field(None, alias="fileName")
    analysis: dict[str, Any]
    timestamp: Optional[datetime] = None
