"""RoomAnalysis SQLAlchemy model: latest AI analysis shared with a room."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String, Uuid

from ..database import Base


class RoomAnalysis(Base):
    """
    Most recent document analysis for a room (one row per room code).

    Delivered privately to late joiners as a catch-up snapshot.
    """

    __tablename__ = "RoomAnalyses"
    __allow_unmapped__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    room_code = Column(
        String(16),
        unique=True,
        nullable=False,
        index=True,
    )
    file_name = Column(
        String(255),
        nullable=True,
    )
    analysis = Column(
        JSON,
        nullable=False,
    )
    last_updated = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def to_event_payload(self) -> dict:
        """Shape used by the room-analysis-updated event."""
        return {
            "roomCode": self.room_code,
            "fileName": self.file_name,
            "analysis": self.analysis,
            "timestamp": self.last_updated.isoformat() if self.last_updated else None,
        }
