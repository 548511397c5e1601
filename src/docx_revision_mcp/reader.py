"""Read operations for Word documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .comments import Comment, list_comments
from .document import WordDocument
from .revisions import list_revisions
from .validation import validate_file_path


@dataclass
class ParagraphInfo:
    """A document paragraph."""

    index: int
    text: str
    style: str | None = None


@dataclass
class DocumentContent:
    """Paragraph text plus a summary of the comments part."""

    file_path: str
    paragraphs: list[ParagraphInfo]
    comments: list[Comment]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "file_path": self.file_path,
            "paragraphs": [
                {"index": p.index, "text": p.text, "style": p.style}
                for p in self.paragraphs
            ],
            "total_paragraphs": len(self.paragraphs),
            "has_comments": bool(self.comments),
            "comment_count": len(self.comments),
        }


def read_docx(path: str) -> dict[str, Any]:
    """Read a Word document's paragraphs.

    Args:
        path: Absolute path to the .docx file

    Returns:
        Dictionary containing file_path, paragraphs (index, text, style),
        total_paragraphs, has_comments and comment_count
    """
    validate_file_path(path)
    doc = WordDocument.load(path)
    content = DocumentContent(
        file_path=path,
        paragraphs=[ParagraphInfo(p.index, p.text, p.style) for p in doc.paragraphs],
        comments=list_comments(doc),
    )
    return content.to_dict()


def list_comments_docx(path: str) -> dict[str, Any]:
    """List every comment in a Word document.

    Returns:
        Dictionary containing file_path, comments and total_comments
    """
    validate_file_path(path)
    doc = WordDocument.load(path)
    comments = list_comments(doc)
    return {
        "file_path": path,
        "comments": [c.to_dict() for c in comments],
        "total_comments": len(comments),
    }


def list_revisions_docx(path: str) -> dict[str, Any]:
    """List every tracked insertion and deletion in a Word document.

    Returns:
        Dictionary containing file_path, revisions and total_revisions
    """
    validate_file_path(path)
    doc = WordDocument.load(path)
    revisions = list_revisions(doc)
    return {
        "file_path": path,
        "revisions": [r.to_dict() for r in revisions],
        "total_revisions": len(revisions),
    }
