"""Pydantic schemas for User model validation."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    """Base schema with common user fields."""

    username: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="User's display name",
        examples=["alice"],
    )
    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["alice@example.com"],
    )
    role: Literal["student", "teacher"] = Field(
        "student",
        description="Account role",
    )


class UserCreate(UserBase):
    """Schema for creating a new user (registration)."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=72,
        description="User's password (will be hashed)",
        examples=["SecureP@ssw0rd!"],
    )


class UserResponse(UserBase):
    """Schema for user response (public data only)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Unique user identifier")
    points: int = Field(0, description="Points earned from completed roadmap tasks")
    created_at: Optional[datetime] = Field(None, description="When the user was created")
