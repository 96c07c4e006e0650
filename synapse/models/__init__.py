"""SQLAlchemy ORM models package."""

from .roadmap import Roadmap
from .room import Room, RoomMember
from .room_analysis import RoomAnalysis
from .user import USER_ROLES, User

__all__ = [
    "Roadmap",
    "Room",
    "RoomAnalysis",
    "RoomMember",
    "USER_ROLES",
    "User",
]
