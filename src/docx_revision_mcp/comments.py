"""Comment manager: comment entries and their in-body anchors, kept in step."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any

from lxml import etree

from .document import WordDocument, current_datetime
from .errors import CommentNotFoundError, MissingTextSelectionError
from .manifest import ensure_comments_registered
from .markup import inject_comment_markers, remove_comment_markers
from .model import CommentRangeStart
from .positions import resolve_range, resolve_text
from .xml_helpers import NAMESPACES, create_element, get_text_content, qn

logger = logging.getLogger(__name__)


@dataclass
class Comment:
    """A comment entry from word/comments.xml."""

    id: int
    author: str
    initials: str
    date: str | None
    text: str
    paragraph_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "comment_id": self.id,
            "paragraph_index": self.paragraph_index,
            "comment_text": self.text,
            "author": self.author,
            "initials": self.initials,
            "created_at": self.date,
        }


def _new_comments_root() -> etree._Element:
    nsmap = {
        "w": NAMESPACES["w"],
        "w14": NAMESPACES["w14"],
        "w15": NAMESPACES["w15"],
        "r": NAMESPACES["r"],
    }
    return etree.Element(qn("w:comments"), nsmap=nsmap)


# w14:paraId values must stay below this
PARA_ID_LIMIT = 0x80000000


def _next_para_id(doc: WordDocument) -> str:
    """A paraId above every one already used in the body and comments parts."""
    attr = qn("w14:paraId")
    used: set[int] = set()
    for root in (doc.body_root, doc.comments_root):
        if root is None:
            continue
        for elem in root.iter():
            value = elem.get(attr)
            if not value:
                continue
            try:
                used.add(int(value, 16))
            except ValueError:
                continue

    candidate = max((v for v in used if v < PARA_ID_LIMIT), default=0) + 1
    if candidate >= PARA_ID_LIMIT:
        candidate = next(v for v in itertools.count(1) if v not in used)
    return f"{candidate:08X}"


def _build_comment_element(comment: Comment, para_id: str) -> etree._Element:
    comment_elem = create_element(
        "w:comment",
        {
            qn("w:id"): str(comment.id),
            qn("w:author"): comment.author,
            qn("w:date"): comment.date or current_datetime(),
            qn("w:initials"): comment.initials,
        },
    )

    # Paragraph with paraId so Word can thread replies against it
    comment_para = create_element("w:p", {qn("w14:paraId"): para_id})
    ref_run = create_element("w:r")
    ref_props = create_element("w:rPr")
    ref_props.append(create_element("w:rStyle", {qn("w:val"): "CommentReference"}))
    ref_run.append(ref_props)
    ref_run.append(create_element("w:annotationRef"))
    comment_para.append(ref_run)

    text_run = create_element("w:r")
    text_t = create_element("w:t")
    text_t.set(qn("xml:space"), "preserve")
    text_t.text = comment.text
    text_run.append(text_t)
    comment_para.append(text_run)
    comment_elem.append(comment_para)
    return comment_elem


def _anchor_paragraphs(doc: WordDocument) -> dict[int, int]:
    """Map comment id to the index of the paragraph holding its range start."""
    anchors: dict[int, int] = {}
    for para in doc.paragraphs:
        for run in para.runs:
            if isinstance(run, CommentRangeStart):
                anchors.setdefault(run.comment_id, para.index)
    return anchors


def add_comment(
    doc: WordDocument,
    paragraph_index: int,
    comment_text: str,
    author: str,
    initials: str,
    text: str | None = None,
    start: int | None = None,
    end: int | None = None,
) -> Comment:
    """Anchor a new comment on a range of one paragraph.

    The anchor is either ``text`` (first occurrence) or the ``start``/``end``
    character range, never both.

    Raises:
        MissingTextSelectionError: Zero or two anchor forms supplied
        ParagraphNotFoundError: Paragraph index out of range
        TextNotFoundError: Anchor text not in the paragraph
        RangeNotFoundError: Range outside the paragraph text
    """
    has_text = text is not None and text != ""
    has_range = start is not None and end is not None
    if has_text == has_range:
        raise MissingTextSelectionError()

    para = doc.paragraph(paragraph_index)
    if has_text:
        resolved = resolve_text(para.runs, text)
    else:
        resolved = resolve_range(para.runs, start, end)

    comment = Comment(
        id=doc.ids.allocate(),
        author=author,
        initials=initials,
        date=current_datetime(),
        text=comment_text,
        paragraph_index=paragraph_index,
    )

    para.replace_runs(inject_comment_markers(para.runs, resolved, comment.id))

    comments_root = doc.comments_root
    if comments_root is None:
        comments_root = _new_comments_root()
        doc.set_comments_root(comments_root)
    comments_root.append(_build_comment_element(comment, _next_para_id(doc)))
    doc.mark_comments_changed()

    ensure_comments_registered(doc.package)

    logger.info(
        "Added comment %d on paragraph %d [%d, %d)",
        comment.id, paragraph_index, resolved.start, resolved.end,
    )
    return comment


def list_comments(doc: WordDocument) -> list[Comment]:
    """Read every comment entry, resolving its paragraph from body markers."""
    comments_root = doc.comments_root
    if comments_root is None:
        return []

    anchors = _anchor_paragraphs(doc)
    comments = []
    for comment_elem in comments_root.iter(qn("w:comment")):
        try:
            comment_id = int(comment_elem.get(qn("w:id"), "0"))
        except ValueError:
            continue
        comments.append(
            Comment(
                id=comment_id,
                author=comment_elem.get(qn("w:author"), "Unknown"),
                initials=comment_elem.get(qn("w:initials"), ""),
                date=comment_elem.get(qn("w:date")),
                text=get_text_content(comment_elem),
                paragraph_index=anchors.get(comment_id),
            )
        )
    return comments


def remove_comment(doc: WordDocument, comment_id: int) -> int:
    """Delete a comment entry together with every body marker that refers to it.

    Returns the number of markers removed.

    Raises:
        CommentNotFoundError: No comment with that id exists
    """
    comments_root = doc.comments_root
    target = None
    if comments_root is not None:
        for comment_elem in comments_root.iter(qn("w:comment")):
            if comment_elem.get(qn("w:id")) == str(comment_id):
                target = comment_elem
                break
    if target is None:
        raise CommentNotFoundError(f"Comment with ID {comment_id} not found")

    target.getparent().remove(target)
    doc.mark_comments_changed()

    removed = 0
    for para in doc.paragraphs:
        runs, count = remove_comment_markers(para.runs, comment_id)
        if count:
            para.replace_runs(runs)
            removed += count

    logger.info("Removed comment %d and %d marker(s)", comment_id, removed)
    return removed
