"""Business logic services."""

from .auth_service import (
    authenticate_user,
    create_access_token,
    create_user,
    decode_access_token,
    get_current_user,
    get_user_by_email,
    require_role,
)
from .gemini_service import AnalysisError, GeminiClient, generate_analysis, generate_roadmap
from .pdf_service import PdfExtractionError, extract_text, extract_upload_text, read_pdf_upload
from .roadmap_service import complete_task, create_roadmap, get_roadmap
from .room_service import (
    create_room,
    generate_room_code,
    get_room_analysis,
    get_room_by_code,
    join_room,
    make_snapshot_loader,
    upsert_room_analysis,
)

__all__ = [
    # Auth
    "authenticate_user",
    "create_access_token",
    "create_user",
    "decode_access_token",
    "get_current_user",
    "get_user_by_email",
    "require_role",
    # Rooms
    "create_room",
    "generate_room_code",
    "get_room_analysis",
    "get_room_by_code",
    "join_room",
    "make_snapshot_loader",
    "upsert_room_analysis",
    # Documents
    "AnalysisError",
    "GeminiClient",
    "PdfExtractionError",
    "extract_text",
    "extract_upload_text",
    "read_pdf_upload",
    "generate_analysis",
    "generate_roadmap",
    # Roadmaps
    "complete_task",
    "create_roadmap",
    "get_roadmap",
]
