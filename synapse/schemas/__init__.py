"""Pydantic schemas package."""

from .analysis import AnalysisResponse, RoadmapResponse, TaskCompletionResponse
from .room import RoomAnalysisResponse, RoomCreateResponse, RoomJoinRequest, RoomJoinResponse
from .user import UserCreate, UserResponse

__all__ = [
    "AnalysisResponse",
    "RoadmapResponse",
    "RoomAnalysisResponse",
    "RoomCreateResponse",
    "RoomJoinRequest",
    "RoomJoinResponse",
    "TaskCompletionResponse",
    "UserCreate",
    "UserResponse",
]
