"""PDF text extraction with PyMuPDF."""

import asyncio
import logging
import re

import fitz  # PyMuPDF
from fastapi import HTTPException, UploadFile, status

from ..config import settings

logger = logging.getLogger(__name__)


class PdfExtractionError(Exception):
    """Raised when a PDF cannot be opened or read."""


def _extract_text_sync(pdf_bytes: bytes) -> tuple[str, int]:
    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            pages = doc.page_count
            text = "\n".join(page.get_text() for page in doc)
    except Exception as e:
        raise PdfExtractionError(f"Failed to extract text from PDF: {e}") from e
    return text, pages


def normalize_text(text: str) -> str:
    """Collapse runs of whitespace."""
    return re.sub(r"\s+", " ", text).strip()


async def extract_text(pdf_bytes: bytes) -> str:
    """
    Extract and normalize the text of a PDF.

    Parsing runs in a worker thread so large documents do not block the
    event loop.

    Raises:
        PdfExtractionError: If the bytes are not a readable PDF
    """
    text, pages = await asyncio.to_thread(_extract_text_sync, pdf_bytes)
    cleaned = normalize_text(text)
    logger.info(f"Extracted {len(cleaned)} characters from {pages} page(s)")
    return cleaned


async def read_pdf_upload(upload: UploadFile) -> bytes:
    """
    Read an uploaded PDF, enforcing type and size limits.

    Raises:
        HTTPException: 400 for non-PDF uploads, 413 when too large
    """
    if upload.content_type != "application/pdf":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only PDF files are accepted.",
        )

    content = await upload.read(settings.max_pdf_size_bytes + 1)
    if len(content) > settings.max_pdf_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {settings.max_pdf_size_bytes // (1024 * 1024)}MB.",
        )
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="PDF file is required",
        )
    return content


async def extract_upload_text(upload: UploadFile) -> str:
    """
    Read an upload and extract enough text to analyse.

    Raises:
        HTTPException: 400 when the PDF is unreadable or has too little text
    """
    content = await read_pdf_upload(upload)
    try:
        text = await extract_text(content)
    except PdfExtractionError as e:
        logger.warning(f"PDF extraction failed for {upload.filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Could not read the PDF file",
        )

    if len(text) < settings.min_pdf_text_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="PDF contains insufficient readable text content",
        )
    return text
