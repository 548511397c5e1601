"""Write operations for Word documents (comments, tracked changes).

Each operation validates its input, loads the whole package, applies one
mutation in memory and writes the package back before returning.
"""

from __future__ import annotations

import logging
from typing import Any

from . import comments, revisions
from .config import get_settings
from .diff import compute_diff
from .document import WordDocument
from .positions import find_text
from .validation import (
    validate_anchor,
    validate_comment_text,
    validate_file_path,
    validate_paragraph_index,
    validate_position,
    validate_text,
)

logger = logging.getLogger(__name__)


def _revision_list(created: list[revisions.Revision]) -> list[dict[str, Any]]:
    return [r.to_dict() for r in created]


def add_comment(
    path: str,
    comment_text: str,
    paragraph_index: int,
    text: str | None = None,
    start_pos: int | None = None,
    end_pos: int | None = None,
    author: str | None = None,
    initials: str | None = None,
) -> dict[str, Any]:
    """Add a comment anchored to text or a character range in a paragraph.

    Args:
        path: Absolute path to the .docx file
        comment_text: The comment content
        paragraph_index: Zero-based index of the target paragraph
        text: Text to anchor the comment to (first occurrence in the paragraph)
        start_pos: Start of the anchor range (inclusive), used with end_pos
        end_pos: End of the anchor range (exclusive)
        author: Comment author name
        initials: Author initials

    Returns:
        Dictionary with success, comment_id, paragraph_index, comment_text,
        author, initials and created_at

    Raises:
        MissingTextSelectionError: Neither or both anchor forms given
        InvalidRangeError: start_pos/end_pos do not form a valid range
        TextNotFoundError: Anchor text not in the paragraph
        RangeNotFoundError: Range extends past the paragraph text
    """
    settings = get_settings()
    validate_file_path(path, writable=True)
    validate_comment_text(comment_text)
    validate_paragraph_index(paragraph_index)
    validate_anchor(text, start_pos, end_pos)

    doc = WordDocument.load(path)
    comment = comments.add_comment(
        doc,
        paragraph_index,
        comment_text,
        author=author or settings.default_author,
        initials=initials or settings.default_initials,
        text=text or None,
        start=start_pos,
        end=end_pos,
    )
    doc.save()

    return {"success": True, **comment.to_dict()}


def delete_comment(path: str, comment_id: int) -> dict[str, Any]:
    """Delete a comment and its anchor markers.

    Raises:
        CommentNotFoundError: If the comment does not exist
    """
    validate_file_path(path, writable=True)

    doc = WordDocument.load(path)
    comments.remove_comment(doc, comment_id)
    doc.save()

    return {"success": True, "comment_id": comment_id}


def insert_text(
    path: str,
    paragraph_index: int,
    text: str,
    position: int | None = None,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Insert text as a tracked insertion.

    Args:
        path: Absolute path to the .docx file
        paragraph_index: Zero-based paragraph index
        text: Text to insert
        position: Character offset to insert at (default: end of paragraph)
        author: Revision author
        date: ISO 8601 revision date (default: now)
    """
    validate_file_path(path, writable=True)
    validate_paragraph_index(paragraph_index)
    validate_text(text)
    validate_position(position)

    doc = WordDocument.load(path)
    revision = revisions.insert_text(
        doc,
        paragraph_index,
        text,
        author=author or get_settings().default_author,
        position=position,
        date=date,
    )
    doc.save()

    return {"success": True, "revision": revision.to_dict()}


def delete_text(
    path: str,
    paragraph_index: int,
    text: str,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Mark the first occurrence of text in a paragraph as a tracked deletion.

    Raises:
        TextNotFoundError: If text is not in the paragraph
    """
    validate_file_path(path, writable=True)
    validate_paragraph_index(paragraph_index)
    validate_text(text)

    doc = WordDocument.load(path)
    revision = revisions.delete_text(
        doc,
        paragraph_index,
        text,
        author=author or get_settings().default_author,
        date=date,
    )
    doc.save()

    return {"success": True, "revision": revision.to_dict()}


def replace_text(
    path: str,
    paragraph_index: int,
    old_text: str,
    new_text: str,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Replace text in a paragraph as tracked deletions and insertions.

    Raises:
        TextNotFoundError: If old_text is not in the paragraph
    """
    settings = get_settings()
    validate_file_path(path, writable=True)
    validate_paragraph_index(paragraph_index)
    validate_text(old_text, "old_text")

    doc = WordDocument.load(path)
    created = revisions.replace_text(
        doc,
        paragraph_index,
        old_text,
        new_text,
        author=author or settings.default_author,
        date=date,
        strategy=settings.diff_strategy,
    )
    doc.save()

    return {"success": True, "revisions": _revision_list(created)}


def modify_paragraph(
    path: str,
    paragraph_index: int,
    new_text: str,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Rewrite a whole paragraph; differences become tracked changes.

    Comment anchors inside the paragraph are not carried over.
    """
    settings = get_settings()
    validate_file_path(path, writable=True)
    validate_paragraph_index(paragraph_index)

    doc = WordDocument.load(path)
    created = revisions.modify_paragraph(
        doc,
        paragraph_index,
        new_text,
        author=author or settings.default_author,
        date=date,
        strategy=settings.diff_strategy,
    )
    doc.save()

    return {"success": True, "revisions": _revision_list(created)}


def suggest_revision(
    path: str,
    paragraph_index: int,
    original_text: str,
    suggested_text: str,
    reason: str,
    apply_immediately: bool = False,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Record a suggested change, optionally applying it as tracked changes.

    Without ``apply_immediately`` the file is not modified; the result carries
    a diff preview under ``changes``.

    Raises:
        TextNotFoundError: If original_text is not in the paragraph
    """
    settings = get_settings()
    validate_file_path(path, writable=apply_immediately)
    validate_paragraph_index(paragraph_index)
    validate_text(original_text, "original_text")
    author = author or settings.default_author

    doc = WordDocument.load(path)
    para = doc.paragraph(paragraph_index)
    start, end = find_text(para.runs, original_text)
    changes = compute_diff(para.text[start:end], suggested_text, settings.diff_strategy)

    result: dict[str, Any] = {
        "success": True,
        "paragraph_index": paragraph_index,
        "original_text": original_text,
        "suggested_text": suggested_text,
        "reason": reason,
        "author": author,
        "changes": [op.to_dict() for op in changes],
        "applied": False,
    }

    if apply_immediately:
        created = revisions.replace_text(
            doc,
            paragraph_index,
            original_text,
            suggested_text,
            author=author,
            date=date,
            strategy=settings.diff_strategy,
        )
        doc.save()
        result["applied"] = True
        result["revisions"] = _revision_list(created)
    else:
        logger.info("Suggested revision for paragraph %d not applied", paragraph_index)

    return result
