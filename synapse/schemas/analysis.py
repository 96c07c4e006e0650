"""Pydantic schemas for PDF analysis and roadmaps."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AnalysisResponse(BaseModel):
    """Result of analysing an uploaded PDF."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    file_name: str = Field(..., alias="fileName")
    content_length: int = Field(..., alias="contentLength")
    analysis: dict[str, Any]
    room_code: Optional[str] = Field(None, alias="roomCode")
    broadcast: bool = Field(False, description="Whether the room was notified")
    timestamp: datetime


class RoadmapResponse(BaseModel):
    """Stored roadmap."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    room_code: Optional[str] = Field(None, alias="roomCode")
    created_by: Optional[UUID] = Field(None, alias="createdBy")
    document_title: Optional[str] = Field(None, alias="documentTitle")
    summary: Optional[str] = None
    data: dict[str, Any]
    created_at: datetime = Field(..., alias="createdAt")


class TaskCompletionResponse(BaseModel):
    """Points awarded for completing a roadmap task."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    points_awarded: int = Field(..., alias="pointsAwarded")
    total_points: int = Field(..., alias="totalPoints")
