from __future__ import annotations

import io
import logging
from pathlib import PurePath

import docx
from pypdf import PdfReader

from aidjobs.config import Settings, get_settings
from aidjobs.errors import UnsupportedFileTypeError
from aidjobs.types import ExtractedFile

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"pdf", "doc", "docx", "txt"}
ALLOWED_MIME_TYPES = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
}


def file_extension(file_name: str) -> str:
    return PurePath(file_name).suffix.lower().lstrip(".")


def validate_upload(file_name: str, content_type: str | None = None) -> str:
    """Return the normalized file type, or raise before anything is stored."""
    extension = file_extension(file_name)
    if extension in ALLOWED_EXTENSIONS:
        return extension

    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in ALLOWED_MIME_TYPES:
        return ALLOWED_MIME_TYPES[mime]

    logger.info("Rejected upload file_name=%s content_type=%s", file_name, content_type)
    raise UnsupportedFileTypeError(f"unsupported file type for {file_name!r}")


def extract_text(
    file_name: str,
    data: bytes,
    content_type: str | None = None,
    settings: Settings | None = None,
) -> ExtractedFile:
    settings = settings or get_settings()
    file_type = validate_upload(file_name, content_type)

    if file_type == "pdf":
        text = _read_pdf(data)
    elif file_type == "docx":
        text = _read_docx(data)
    else:
        text = data.decode("utf-8", errors="ignore")

    text = text.strip()
    if not text:
        raise UnsupportedFileTypeError(
            f"no readable text in {file_name!r}",
            user_message="I couldn't read any text from that file. Please upload a PDF, Word or text file.",
        )

    limit = settings.upload_text_max_chars
    return ExtractedFile(
        file_name=file_name,
        file_type=file_type,
        text=text[:limit],
        truncated=len(text) > limit,
    )


def _read_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except Exception as exc:
        logger.warning("PDF extraction failed: %s", exc)
        return ""


def _read_docx(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as exc:
        logger.warning("DOCX extraction failed: %s", exc)
        return ""
    return "\n".join(paragraph.text for paragraph in document.paragraphs if paragraph.text.strip())
