"""PDF analysis endpoint.

Extracts the text of an uploaded PDF, asks Gemini for a learning analysis
and, when a room code is supplied, stores the result as that room's latest
snapshot and pushes it to everyone connected to the room.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.analysis import AnalysisResponse
from ..services import room_service
from ..services.gemini_service import generate_analysis
from ..services.pdf_service import extract_upload_text
from ..websocket import handle_room_analysis_updated

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analysis", tags=["Analysis"])


@router.post(
    "/pdf",
    response_model=AnalysisResponse,
    summary="Analyse a PDF and optionally share it with a room",
    responses={
        400: {"description": "Not a PDF, unreadable, or too little text"},
        413: {"description": "File too large"},
    },
)
async def analyze_pdf(
    request: Request,
    pdf: UploadFile = File(...),
    room_code: Optional[str] = Form(None, alias="roomCode"),
    db: AsyncSession = Depends(get_db),
) -> AnalysisResponse:
    file_name = pdf.filename or "document.pdf"
    text = await extract_upload_text(pdf)
    logger.info(f"Analysing {file_name} ({len(text)} chars)")

    analysis = await generate_analysis(text, file_name)

    broadcast = False
    if room_code:
        try:
            snapshot = await room_service.upsert_room_analysis(db, room_code, file_name, analysis)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to persist analysis for room {room_code}: {e}")
        else:
            await handle_room_analysis_updated(
                room_code,
                file_name,
                analysis,
                request.app.state.connection_manager,
                timestamp=snapshot.last_updated,
            )
            broadcast = True

    return AnalysisResponse(
        file_name=file_name,
        content_length=len(text),
        analysis=analysis,
        room_code=room_code,
        broadcast=broadcast,
        timestamp=datetime.utcnow(),
    )
