"""Input checks performed before any file is opened."""

from __future__ import annotations

import os
from pathlib import Path

from .errors import (
    InvalidRangeError,
    MissingTextSelectionError,
    NotAFileError,
    NotWritableError,
    UnreadableError,
    ValidationError,
)

DOCX_EXTENSION = ".docx"


def validate_file_path(file_path: str, writable: bool = False) -> Path:
    """Check that ``file_path`` names an existing, accessible .docx file."""
    if not file_path or not isinstance(file_path, str):
        raise ValidationError("File path is required and must be a string", "file_path", "MISSING_PATH")

    path = Path(file_path)
    if not path.is_absolute():
        raise ValidationError(f"File path must be absolute: {file_path}", "file_path", "INVALID_PATH")

    if path.suffix.lower() != DOCX_EXTENSION:
        raise ValidationError(
            f"Only .docx files are supported. Got: {path.suffix or '(none)'}",
            "file_path",
            "INVALID_EXTENSION",
        )

    if not path.is_file():
        raise NotAFileError(f"File not found: {file_path}")

    if not os.access(path, os.R_OK):
        raise UnreadableError(f"File is not readable: {file_path}")

    if writable and not os.access(path, os.W_OK):
        raise NotWritableError(
            f"File is not writable: {file_path}. Please close the file in other applications."
        )
    return path


def validate_paragraph_index(index: int) -> None:
    if isinstance(index, bool) or not isinstance(index, int):
        raise ValidationError(
            "Paragraph index must be an integer", "paragraph_index", "INVALID_PARAGRAPH_INDEX"
        )
    if index < 0:
        raise ValidationError(
            "Paragraph index must be non-negative", "paragraph_index", "INVALID_PARAGRAPH_INDEX"
        )


def validate_comment_text(text: str) -> None:
    if not text or not isinstance(text, str) or not text.strip():
        raise ValidationError(
            "Comment text cannot be empty or whitespace only", "comment_text", "EMPTY_COMMENT_TEXT"
        )


def validate_text(text: str, field: str = "text") -> None:
    if not text or not isinstance(text, str):
        raise ValidationError(f"{field} must be a non-empty string", field, "EMPTY_TEXT")


def validate_position(position: int | None) -> None:
    if position is None:
        return
    if isinstance(position, bool) or not isinstance(position, int) or position < 0:
        raise ValidationError("Position must be a non-negative integer", "position", "INVALID_POSITION")


def validate_anchor(text: str | None, start_pos: int | None, end_pos: int | None) -> None:
    """Exactly one anchor form: non-empty text, or a complete start/end pair."""
    has_text = bool(text)
    has_range = start_pos is not None and end_pos is not None
    if has_text == has_range:
        raise MissingTextSelectionError()
    if has_range and (start_pos < 0 or end_pos <= start_pos):
        raise InvalidRangeError(
            f"Invalid range: start_pos={start_pos}, end_pos={end_pos} "
            "(need 0 <= start_pos < end_pos)"
        )
