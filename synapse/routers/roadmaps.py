"""Roadmap API endpoints: generate from a PDF, fetch, complete tasks for points."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.analysis import RoadmapResponse, TaskCompletionResponse
from ..services import roadmap_service
from ..services.auth_service import get_current_user
from ..services.gemini_service import generate_roadmap
from ..services.pdf_service import extract_upload_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/roadmaps", tags=["Roadmaps"])


@router.post(
    "/analyze",
    response_model=RoadmapResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate a roadmap from a PDF",
)
async def analyze_roadmap(
    pdf: UploadFile = File(...),
    room_code: Optional[str] = Form(None, alias="roomCode"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoadmapResponse:
    """
    Turn an uploaded PDF into milestones with point-bearing tasks.

    The roadmap is stored even when generation falls back to an empty plan,
    so the client always gets an id back.
    """
    text = await extract_upload_text(pdf)
    roadmap_json = await generate_roadmap(text)
    return await roadmap_service.create_roadmap(
        db,
        roadmap_json,
        document_title=pdf.filename,
        created_by=current_user.id,
        room_code=room_code,
    )


@router.get(
    "/{roadmap_id}",
    response_model=RoadmapResponse,
    summary="Get a roadmap",
    responses={404: {"description": "Roadmap not found"}},
)
async def get_roadmap(
    roadmap_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RoadmapResponse:
    return await roadmap_service.get_roadmap(db, roadmap_id)


@router.post(
    "/{roadmap_id}/tasks/{task_id}/complete",
    response_model=TaskCompletionResponse,
    summary="Complete a roadmap task and collect its points",
    responses={
        400: {"description": "Task already completed"},
        404: {"description": "Roadmap or task not found"},
    },
)
async def complete_task(
    roadmap_id: UUID,
    task_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TaskCompletionResponse:
    points, total = await roadmap_service.complete_task(db, roadmap_id, task_id, current_user)
    return TaskCompletionResponse(points_awarded=points, total_points=total)
