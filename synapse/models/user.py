"""User SQLAlchemy model for authentication and room membership."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Uuid
from sqlalchemy.orm import relationship

from ..database import Base

USER_ROLES = ("student", "teacher")


class User(Base):
    """
    User model representing application users.

    Attributes:
        id: Unique identifier (UUID)
        username: Display/user name
        email: User's email address (unique)
        password_hash: Hashed password for authentication
        role: Either 'student' or 'teacher'
        points: Points earned by completing roadmap tasks
        created_at: Timestamp when user was created
        updated_at: Timestamp when user was last updated
    """

    __tablename__ = "Users"
    __allow_unmapped__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    # Authentication fields
    username = Column(
        String(100),
        nullable=False,
    )
    email = Column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash = Column(
        String(255),
        nullable=False,
    )
    role = Column(
        String(20),
        nullable=False,
        default="student",
    )
    points = Column(
        Integer,
        nullable=False,
        default=0,
    )

    # Timestamps
    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    hosted_rooms = relationship(
        "Room",
        back_populates="host",
        lazy="noload",
    )
    room_memberships = relationship(
        "RoomMember",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
