"""Roadmap SQLAlchemy model: AI-generated milestone/task plan for a document."""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, Uuid

from ..database import Base


class Roadmap(Base):
    """
    Learning roadmap generated from an uploaded document.

    Attributes:
        id: Unique identifier (UUID)
        room_code: Room the roadmap was generated for (optional)
        created_by: FK to the uploading user (optional)
        document_title: Original file name
        summary: Short summary text
        data: learningObjectives, roadmap (milestones with tasks), hints, confidence
        created_at: Timestamp when the roadmap was created
    """

    __tablename__ = "Roadmaps"
    __allow_unmapped__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    room_code = Column(
        String(16),
        nullable=True,
        index=True,
    )
    created_by = Column(
        Uuid(as_uuid=True),
        ForeignKey("Users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    document_title = Column(
        String(255),
        nullable=True,
    )
    summary = Column(
        Text,
        nullable=True,
    )
    data = Column(
        JSON,
        nullable=False,
        default=dict,
    )
    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def find_task(self, task_id: str) -> Optional[dict[str, Any]]:
        """Find a task by id across all milestones."""
        for milestone in (self.data or {}).get("roadmap", []):
            for task in milestone.get("tasks", []):
                candidate = task.get("task_id", task.get("taskId"))
                if candidate is not None and str(candidate) == task_id:
                    return task
        return None
