"""Roadmap persistence and task-completion point awards."""

import logging
from typing import Any, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from ..models.roadmap import Roadmap
from ..models.user import User

logger = logging.getLogger(__name__)

MIN_TASK_POINTS = 5
POINTS_PER_HOUR = 5


def task_points(task: dict[str, Any]) -> int:
    """Explicit points, else five per estimated hour (at least five)."""
    points = task.get("points")
    if isinstance(points, (int, float)) and points > 0:
        return int(points)
    hours = task.get("estimated_hours") or 1
    return int(max(MIN_TASK_POINTS, hours * POINTS_PER_HOUR))


async def create_roadmap(
    db: AsyncSession,
    roadmap_json: dict[str, Any],
    document_title: Optional[str],
    created_by: Optional[UUID],
    room_code: Optional[str] = None,
) -> Roadmap:
    """Store a generated roadmap."""
    summary = roadmap_json.get("summary")
    roadmap = Roadmap(
        room_code=room_code,
        created_by=created_by,
        document_title=document_title,
        summary=summary if isinstance(summary, str) else None,
        data={
            "learningObjectives": roadmap_json.get("learningObjectives") or [],
            "roadmap": roadmap_json.get("roadmap") or [],
            "hints": roadmap_json.get("hints") or [],
            "confidence": roadmap_json.get("confidence"),
            "document": {"title": document_title, "source": "upload"},
        },
    )
    db.add(roadmap)
    await db.flush()
    await db.refresh(roadmap)
    logger.info(f"Roadmap {roadmap.id} stored for {document_title}")
    return roadmap


async def get_roadmap(db: AsyncSession, roadmap_id: UUID) -> Roadmap:
    """
    Raises:
        HTTPException: 404 if the roadmap does not exist
    """
    result = await db.execute(select(Roadmap).where(Roadmap.id == roadmap_id))
    roadmap = result.scalar_one_or_none()
    if roadmap is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Roadmap not found",
        )
    return roadmap


async def complete_task(
    db: AsyncSession,
    roadmap_id: UUID,
    task_id: str,
    user: User,
) -> tuple[int, int]:
    """
    Mark a roadmap task completed and award its points to ``user``.

    Returns:
        (points awarded, user's new total)

    Raises:
        HTTPException: 404 roadmap/task missing, 400 already completed
    """
    roadmap = await get_roadmap(db, roadmap_id)

    task = roadmap.find_task(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    if task.get("completed"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Task already completed",
        )

    task["completed"] = True
    flag_modified(roadmap, "data")

    points = task_points(task)
    await db.execute(
        update(User).where(User.id == user.id).values(points=User.points + points)
    )
    await db.flush()
    await db.refresh(user)

    logger.info(f"User {user.id} completed task {task_id} of roadmap {roadmap_id}: +{points}")
    return points, user.points
