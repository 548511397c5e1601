"""Tracked insertions and deletions.

Edits never rewrite text silently: removed characters become ``w:del`` runs
and added characters become ``w:ins`` runs, each with its own revision id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .diff import DiffOperation, compute_diff
from .document import IdAllocator, WordDocument, current_datetime
from .errors import ProtectedContentError, RevisionConflictError
from .markup import split_point, split_range
from .model import (
    ContainerRun,
    DeletedRun,
    InsertedRun,
    Run,
    TextRun,
    build_deletion,
    run_text,
    slice_run,
)
from .positions import find_text, resolve_point, resolve_range

logger = logging.getLogger(__name__)


@dataclass
class Revision:
    """A tracked change as seen from the body."""

    id: int
    type: str  # "insert" or "delete"
    text: str
    author: str
    date: str | None
    paragraph_index: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "revision_id": self.id,
            "type": self.type,
            "text": self.text,
            "author": self.author,
            "date": self.date,
            "paragraph_index": self.paragraph_index,
        }


def _as_revision(run: InsertedRun | DeletedRun, paragraph_index: int) -> Revision:
    return Revision(
        id=run.revision_id,
        type="insert" if isinstance(run, InsertedRun) else "delete",
        text=run.text,
        author=run.author,
        date=run.date,
        paragraph_index=paragraph_index,
    )


def build_revision_runs(
    operations: list[DiffOperation],
    ids: IdAllocator,
    author: str,
    date: str,
) -> list[Run]:
    """Turn an edit script into runs: equal -> plain, delete -> w:del, insert -> w:ins."""
    runs: list[Run] = []
    for op in operations:
        if not op.text:
            continue
        if op.kind == "equal":
            runs.append(TextRun(op.text))
        elif op.kind == "delete":
            runs.append(DeletedRun(op.text, ids.allocate(), author, date))
        elif op.kind == "insert":
            runs.append(InsertedRun(op.text, ids.allocate(), author, date))
        else:
            raise ValueError(f"Unknown diff operation: {op.kind}")
    return runs


def _created(runs: list[Run], paragraph_index: int) -> list[Revision]:
    return [
        _as_revision(run, paragraph_index)
        for run in runs
        if isinstance(run, (InsertedRun, DeletedRun))
    ]


def apply_revisions(
    doc: WordDocument,
    paragraph_index: int,
    operations: list[DiffOperation],
    author: str,
    date: str | None = None,
) -> list[Revision]:
    """Replace a paragraph's whole run sequence with the runs of an edit script.

    Any comment anchors in the paragraph are discarded; callers must re-anchor
    comments afterwards if they need them.
    """
    para = doc.paragraph(paragraph_index)
    runs = build_revision_runs(operations, doc.ids, author, date or current_datetime())
    para.replace_runs(runs)
    created = _created(runs, paragraph_index)
    logger.info("Rewrote paragraph %d with %d revision(s)", paragraph_index, len(created))
    return created


def _check_editable(runs: list[Run], text: str, paragraph_index: int) -> None:
    """Refuse to rewrite runs that already carry tracked changes or wrap other runs.

    Raises:
        RevisionConflictError: A run is an existing insertion or deletion
        ProtectedContentError: A run is a hyperlink, smart tag or field
    """
    if any(isinstance(run, (InsertedRun, DeletedRun)) for run in runs):
        raise RevisionConflictError(
            f"Text '{text}' overlaps existing tracked changes in paragraph {paragraph_index}"
        )
    if any(isinstance(run, ContainerRun) for run in runs):
        raise ProtectedContentError(
            f"Text '{text}' overlaps a hyperlink or field in paragraph {paragraph_index}"
        )


def _take(queue: list[Run], count: int) -> list[Run]:
    """Pop runs off the front of ``queue`` until ``count`` characters are consumed.

    A run straddling the limit is split and its remainder left in the queue.
    Markers met on the way are taken along; markers right after the last
    character stay queued.
    """
    taken: list[Run] = []
    while queue and count > 0:
        run = queue[0]
        if not isinstance(run, TextRun) or len(run.text) <= count:
            taken.append(queue.pop(0))
            count -= len(run_text(run))
        else:
            taken.append(slice_run(run, 0, count))
            queue[0] = slice_run(run, count)
            count = 0
    return taken


def _deletions(runs: list[Run], ids: IdAllocator, author: str, date: str) -> list[Run]:
    """Wrap each stretch of plain runs in a tracked deletion; markers stay between them."""
    result: list[Run] = []
    pending: list[TextRun] = []
    for run in runs:
        if isinstance(run, TextRun):
            pending.append(run)
            continue
        if pending:
            result.append(build_deletion(pending, ids.allocate(), author, date))
            pending = []
        result.append(run)
    if pending:
        result.append(build_deletion(pending, ids.allocate(), author, date))
    return result


def _splice_script(
    middle: list[Run],
    operations: list[DiffOperation],
    ids: IdAllocator,
    author: str,
    date: str,
) -> list[Run]:
    """Lay an edit script over the runs of a matched range.

    Equal text keeps its source runs and deleted text keeps its content
    inside ``w:del``. Comment markers and other non-text nodes stay at the
    character offset they had; a deletion spanning one is split around it.
    """
    queue = list(middle)
    runs: list[Run] = []
    for op in operations:
        if not op.text:
            continue
        if op.kind == "insert":
            runs.append(InsertedRun(op.text, ids.allocate(), author, date))
        elif op.kind == "equal":
            runs.extend(_take(queue, len(op.text)))
        elif op.kind == "delete":
            runs.extend(_deletions(_take(queue, len(op.text)), ids, author, date))
        else:
            raise ValueError(f"Unknown diff operation: {op.kind}")
    runs.extend(queue)
    return runs


def insert_text(
    doc: WordDocument,
    paragraph_index: int,
    text: str,
    author: str,
    position: int | None = None,
    date: str | None = None,
) -> Revision:
    """Insert ``text`` as a tracked insertion at ``position`` (default: end).

    Raises:
        ParagraphNotFoundError: Paragraph index out of range
        RangeNotFoundError: Position beyond the paragraph text
    """
    para = doc.paragraph(paragraph_index)
    if position is None:
        position = len(para.text)

    point = resolve_point(para.runs, position)
    before, after = split_point(para.runs, point)
    run = InsertedRun(text, doc.ids.allocate(), author, date or current_datetime())
    para.replace_runs([*before, run, *after])

    logger.info("Inserted %d char(s) at %d in paragraph %d", len(text), position, paragraph_index)
    return _as_revision(run, paragraph_index)


def delete_text(
    doc: WordDocument,
    paragraph_index: int,
    text: str,
    author: str,
    date: str | None = None,
) -> Revision:
    """Mark the first occurrence of ``text`` as a tracked deletion.

    Anchor markers inside the range stay where they are. Tabs, breaks and
    drawings inside the range are deleted along with the text.

    Raises:
        ParagraphNotFoundError: Paragraph index out of range
        TextNotFoundError: Text not in the paragraph
        RevisionConflictError: Range already holds tracked changes
        ProtectedContentError: Range overlaps a hyperlink or field
    """
    para = doc.paragraph(paragraph_index)
    start, end = find_text(para.runs, text)
    resolved = resolve_range(para.runs, start, end)
    before, middle, after = split_range(para.runs, resolved)
    _check_editable(middle, text, paragraph_index)

    deletion = build_deletion(
        [run for run in middle if isinstance(run, TextRun)],
        doc.ids.allocate(), author, date or current_datetime(),
    )

    # Text runs collapse into one deletion placed where the first one was;
    # markers keep their relative order around it.
    new_middle: list[Run] = []
    placed = False
    for run in middle:
        if isinstance(run, TextRun):
            if not placed:
                new_middle.append(deletion)
                placed = True
        else:
            new_middle.append(run)
    para.replace_runs([*before, *new_middle, *after])

    logger.info("Deleted '%s' in paragraph %d", deletion.text, paragraph_index)
    return _as_revision(deletion, paragraph_index)


def replace_text(
    doc: WordDocument,
    paragraph_index: int,
    old_text: str,
    new_text: str,
    author: str,
    date: str | None = None,
    strategy: str = "word",
) -> list[Revision]:
    """Replace the first occurrence of ``old_text`` with tracked changes.

    Only the matched range is rewritten; runs outside it are untouched, and
    comment markers inside it keep their place.

    Raises:
        ParagraphNotFoundError: Paragraph index out of range
        TextNotFoundError: ``old_text`` not in the paragraph
        RevisionConflictError: Range already holds tracked changes
        ProtectedContentError: Range overlaps a hyperlink or field
    """
    para = doc.paragraph(paragraph_index)
    start, end = find_text(para.runs, old_text)
    resolved = resolve_range(para.runs, start, end)
    before, middle, after = split_range(para.runs, resolved)
    _check_editable(middle, old_text, paragraph_index)

    operations = compute_diff(para.text[start:end], new_text, strategy)
    new_runs = _splice_script(middle, operations, doc.ids, author, date or current_datetime())
    para.replace_runs([*before, *new_runs, *after])
    created = _created(new_runs, paragraph_index)

    logger.info(
        "Replaced text in paragraph %d with %d revision(s) (%s diff)",
        paragraph_index, len(created), strategy,
    )
    return created


def modify_paragraph(
    doc: WordDocument,
    paragraph_index: int,
    new_text: str,
    author: str,
    date: str | None = None,
    strategy: str = "word",
) -> list[Revision]:
    """Rewrite a whole paragraph as a diff against its current text.

    Raises:
        ParagraphNotFoundError: Paragraph index out of range
        ProtectedContentError: The paragraph holds a hyperlink or field
    """
    para = doc.paragraph(paragraph_index)
    if any(isinstance(run, ContainerRun) for run in para.runs):
        raise ProtectedContentError(
            f"Paragraph {paragraph_index} holds a hyperlink or field and cannot be rewritten whole"
        )
    operations = compute_diff(para.text, new_text, strategy)
    return apply_revisions(doc, paragraph_index, operations, author, date)


def list_revisions(doc: WordDocument) -> list[Revision]:
    """Every tracked insertion and deletion, in document order."""
    revisions = []
    for para in doc.paragraphs:
        for run in para.runs:
            if isinstance(run, (InsertedRun, DeletedRun)):
                revisions.append(_as_revision(run, para.index))
    return revisions
