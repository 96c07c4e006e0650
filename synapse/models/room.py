"""Room and RoomMember SQLAlchemy models."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..database import Base


class Room(Base):
    """
    A persistent collaboration space identified by a short code.

    The live roster of connected sockets is not stored here; it lives in the
    in-memory room registry and is rebuilt as clients reconnect.

    Attributes:
        id: Unique identifier (UUID)
        code: Short unique room code shared with participants
        host_id: FK to the user who created the room
        created_at: Timestamp when the room was created
    """

    __tablename__ = "Rooms"
    __allow_unmapped__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    code = Column(
        String(16),
        unique=True,
        nullable=False,
        index=True,
    )
    host_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("Users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    host = relationship(
        "User",
        back_populates="hosted_rooms",
        lazy="noload",
    )
    members = relationship(
        "RoomMember",
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="RoomMember.joined_at",
        lazy="selectin",
    )

    @property
    def participant_ids(self) -> list[uuid.UUID]:
        """User ids of the persisted participants, in join order."""
        return [member.user_id for member in self.members]

    def __repr__(self) -> str:
        return f"<Room(code={self.code}, host_id={self.host_id})>"


class RoomMember(Base):
    """Persisted participant record linking a user to a room."""

    __tablename__ = "RoomMembers"
    __allow_unmapped__ = True
    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_room_members_room_user"),
    )

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    room_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("Rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("Users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    joined_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    room = relationship("Room", back_populates="members")
    user = relationship("User", back_populates="room_memberships")
