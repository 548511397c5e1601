"""MCP server for Word document comments and tracked revisions."""

from __future__ import annotations

import logging
import sys
from typing import Any

from mcp.server.fastmcp import FastMCP

from . import reader, writer
from .config import get_settings
from .errors import DocxRevisionError, ValidationError

logger = logging.getLogger(__name__)

# Create the MCP server
mcp = FastMCP(name="docx-revision-mcp")


def _format_error(error: Exception) -> dict[str, Any]:
    """Format an exception as a structured error response."""
    result: dict[str, Any] = {
        "success": False,
        "error": str(error),
        "error_type": type(error).__name__,
        "code": getattr(error, "code", "OPERATION_FAILED"),
    }
    if isinstance(error, ValidationError):
        result["field"] = error.field
    return result


def _unexpected(error: Exception, tool: str) -> dict[str, Any]:
    logger.exception("Unexpected failure in %s", tool)
    result = _format_error(error)
    result["code"] = "OPERATION_FAILED"
    return result


@mcp.tool()
def read_document(file_path: str) -> dict[str, Any]:
    """Read a .docx file and return its paragraphs and a comment summary.

    Args:
        file_path: Absolute path to the .docx file

    Returns:
        Dictionary containing:
        - file_path: The path that was read
        - paragraphs: List of paragraphs with index, text, and style
        - total_paragraphs: Number of paragraphs
        - has_comments: Whether the document has any comments
        - comment_count: Number of comments
    """
    try:
        return reader.read_docx(file_path)
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "read_document")


@mcp.tool()
def add_comment(
    file_path: str,
    comment_text: str,
    paragraph_index: int,
    text: str | None = None,
    start_pos: int | None = None,
    end_pos: int | None = None,
    author: str | None = None,
    initials: str | None = None,
) -> dict[str, Any]:
    """Add a comment to a specific span of a paragraph.

    Anchor the comment with either ``text`` (first occurrence in the
    paragraph) or ``start_pos``/``end_pos`` (character offsets, end exclusive).

    Args:
        file_path: Absolute path to the .docx file
        comment_text: The comment content
        paragraph_index: Zero-based index of the target paragraph
        text: Text to anchor the comment to
        start_pos: Start of the anchored range
        end_pos: End of the anchored range (exclusive)
        author: Comment author name (default: "AI Assistant")
        initials: Author initials (default: "AI")

    Returns:
        Dictionary containing success, comment_id, paragraph_index,
        comment_text, author, initials, created_at
    """
    try:
        return writer.add_comment(
            path=file_path,
            comment_text=comment_text,
            paragraph_index=paragraph_index,
            text=text,
            start_pos=start_pos,
            end_pos=end_pos,
            author=author,
            initials=initials,
        )
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "add_comment")


@mcp.tool()
def list_comments(file_path: str) -> dict[str, Any]:
    """List all comments in a .docx document.

    Args:
        file_path: Absolute path to the .docx file

    Returns:
        Dictionary containing file_path, comments (comment_id, paragraph_index,
        comment_text, author, initials, created_at) and total_comments
    """
    try:
        return reader.list_comments_docx(file_path)
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "list_comments")


@mcp.tool()
def delete_comment(file_path: str, comment_id: int) -> dict[str, Any]:
    """Delete a comment and its anchor from a .docx document.

    Args:
        file_path: Absolute path to the .docx file
        comment_id: ID of the comment to delete

    Returns:
        Dictionary containing success and comment_id
    """
    try:
        return writer.delete_comment(path=file_path, comment_id=comment_id)
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "delete_comment")


@mcp.tool()
def insert_text(
    file_path: str,
    paragraph_index: int,
    text: str,
    position: int | None = None,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Insert text into a paragraph as a tracked change.

    Args:
        file_path: Absolute path to the .docx file
        paragraph_index: Index of the paragraph to insert into (0-based)
        text: Text to insert
        position: Character offset to insert at (default: end of paragraph)
        author: Author name for the revision (default: "AI Assistant")
        date: ISO date string for the revision (default: current time)

    Returns:
        Dictionary containing success and revision (revision_id, type, text,
        author, date, paragraph_index)
    """
    try:
        return writer.insert_text(
            path=file_path,
            paragraph_index=paragraph_index,
            text=text,
            position=position,
            author=author,
            date=date,
        )
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "insert_text")


@mcp.tool()
def delete_text(
    file_path: str,
    paragraph_index: int,
    text: str,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Delete text from a paragraph as a tracked change.

    Args:
        file_path: Absolute path to the .docx file
        paragraph_index: Index of the paragraph containing the text (0-based)
        text: Text to delete (first occurrence)
        author: Author name for the revision (default: "AI Assistant")
        date: ISO date string for the revision (default: current time)

    Returns:
        Dictionary containing success and revision
    """
    try:
        return writer.delete_text(
            path=file_path,
            paragraph_index=paragraph_index,
            text=text,
            author=author,
            date=date,
        )
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "delete_text")


@mcp.tool()
def replace_text(
    file_path: str,
    paragraph_index: int,
    old_text: str,
    new_text: str,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Replace text in a paragraph; the edit is recorded as tracked changes.

    Args:
        file_path: Absolute path to the .docx file
        paragraph_index: Index of the paragraph containing the text (0-based)
        old_text: Text to replace (first occurrence)
        new_text: Replacement text
        author: Author name for the revisions (default: "AI Assistant")
        date: ISO date string for the revisions (default: current time)

    Returns:
        Dictionary containing success and revisions
    """
    try:
        return writer.replace_text(
            path=file_path,
            paragraph_index=paragraph_index,
            old_text=old_text,
            new_text=new_text,
            author=author,
            date=date,
        )
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "replace_text")


@mcp.tool()
def modify_paragraph(
    file_path: str,
    paragraph_index: int,
    new_text: str,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Rewrite an entire paragraph with track changes.

    Removed text is marked deleted and added text inserted. Comment anchors in
    the paragraph are dropped.

    Args:
        file_path: Absolute path to the .docx file
        paragraph_index: Index of the paragraph to modify (0-based)
        new_text: New text for the paragraph
        author: Author name for the revisions (default: "AI Assistant")
        date: ISO date string for the revisions (default: current time)

    Returns:
        Dictionary containing success and revisions
    """
    try:
        return writer.modify_paragraph(
            path=file_path,
            paragraph_index=paragraph_index,
            new_text=new_text,
            author=author,
            date=date,
        )
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "modify_paragraph")


@mcp.tool()
def list_revisions(file_path: str) -> dict[str, Any]:
    """List all tracked insertions and deletions in a .docx document.

    Args:
        file_path: Absolute path to the .docx file

    Returns:
        Dictionary containing file_path, revisions (revision_id, type, text,
        author, date, paragraph_index) and total_revisions
    """
    try:
        return reader.list_revisions_docx(file_path)
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "list_revisions")


@mcp.tool()
def suggest_revision(
    file_path: str,
    paragraph_index: int,
    original_text: str,
    suggested_text: str,
    reason: str,
    apply_immediately: bool = False,
    author: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Suggest a revision for a text segment, explaining why.

    Args:
        file_path: Absolute path to the .docx file
        paragraph_index: Index of the paragraph containing the text (0-based)
        original_text: The text segment that needs revision
        suggested_text: The suggested replacement text
        reason: Why the change is suggested (e.g. "grammar error", "clarity")
        apply_immediately: Apply the revision now as tracked changes (default: False)
        author: Author name for the revision (default: "AI Assistant")
        date: ISO date string for the revision (default: current time)

    Returns:
        Dictionary containing the suggestion, a diff preview under changes,
        applied, and revisions when applied
    """
    try:
        return writer.suggest_revision(
            path=file_path,
            paragraph_index=paragraph_index,
            original_text=original_text,
            suggested_text=suggested_text,
            reason=reason,
            apply_immediately=apply_immediately,
            author=author,
            date=date,
        )
    except DocxRevisionError as e:
        return _format_error(e)
    except Exception as e:
        return _unexpected(e, "suggest_revision")


def main():
    """Run the MCP server."""
    logging.basicConfig(
        stream=sys.stderr,
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("docx-revision-mcp server running on stdio")
    mcp.run()


if __name__ == "__main__":
    main()
