"""Role-specific dashboard endpoints."""

from fastapi import APIRouter, Depends

from ..models.user import User
from ..services.auth_service import require_role

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/student", summary="Student dashboard")
async def student_dashboard(
    current_user: User = Depends(require_role("student")),
) -> dict:
    return {
        "message": f"Welcome {current_user.username}",
        "role": current_user.role,
        "points": current_user.points,
    }


@router.get("/teacher", summary="Teacher dashboard")
async def teacher_dashboard(
    current_user: User = Depends(require_role("teacher")),
) -> dict:
    return {
        "message": f"Welcome {current_user.username}",
        "role": current_user.role,
    }
