"""Paragraph and run model.

A paragraph's direct XML children are decoded into a flat list of typed runs.
Runs decoded from the document keep a reference to their source element, and
encoding a paragraph re-uses those elements untouched; only runs created or
split by an edit are built from scratch.

Known limitation: a run that is split loses its run properties (``w:rPr``).
Its other content (tabs, breaks, drawings) goes to the piece it falls in.
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass, field
from typing import Union

from lxml import etree

from .xml_helpers import (
    create_element,
    create_text_element,
    get_paragraph_style,
    get_text_content,
    iter_paragraphs,
    qn,
)


@dataclass
class TextRun:
    """Plain, untracked text."""

    text: str
    element: etree._Element | None = field(default=None, repr=False, compare=False)


@dataclass
class InsertedRun:
    """Text wrapped in a tracked insertion (``w:ins``)."""

    text: str
    revision_id: int
    author: str
    date: str | None = None
    element: etree._Element | None = field(default=None, repr=False, compare=False)


@dataclass
class DeletedRun:
    """Text wrapped in a tracked deletion (``w:del``)."""

    text: str
    revision_id: int
    author: str
    date: str | None = None
    element: etree._Element | None = field(default=None, repr=False, compare=False)


@dataclass
class CommentRangeStart:
    comment_id: int
    element: etree._Element | None = field(default=None, repr=False, compare=False)


@dataclass
class CommentRangeEnd:
    comment_id: int
    element: etree._Element | None = field(default=None, repr=False, compare=False)


@dataclass
class CommentReference:
    comment_id: int
    element: etree._Element | None = field(default=None, repr=False, compare=False)


@dataclass
class ContainerRun:
    """A hyperlink, smart tag or simple field wrapping runs of its own.

    Its text counts toward the paragraph text but it is only ever handled
    whole: ranges may enclose it, never cut into it.
    """

    text: str
    element: etree._Element = field(repr=False, compare=False)


@dataclass
class OpaqueNode:
    """Any other paragraph child (bookmarks, proofing marks...), kept verbatim."""

    element: etree._Element = field(repr=False, compare=False)


Run = Union[
    TextRun, InsertedRun, DeletedRun, ContainerRun,
    CommentRangeStart, CommentRangeEnd, CommentReference, OpaqueNode,
]

# Runs that can be split at any character
TEXT_RUNS = (TextRun, InsertedRun, DeletedRun)
# Runs that contribute characters to the rendered text
CHAR_RUNS = (TextRun, InsertedRun, DeletedRun, ContainerRun)
COMMENT_MARKERS = (CommentRangeStart, CommentRangeEnd, CommentReference)

CONTAINER_TAGS = frozenset(qn(tag) for tag in ("w:hyperlink", "w:smartTag", "w:fldSimple"))


def run_text(run: Run) -> str:
    """Characters a run contributes to the rendered text."""
    if isinstance(run, CHAR_RUNS):
        return run.text
    return ""


def rendered_text(runs: list[Run]) -> str:
    return "".join(run_text(run) for run in runs)


def _run_elements(elem: etree._Element) -> list[etree._Element]:
    if elem.tag == qn("w:r"):
        return [elem]
    return list(elem.iter(qn("w:r")))


def _sliced_content(run: Run, start: int, end: int | None) -> list[etree._Element]:
    """Content children of the run's source XML that fall in ``[start, end)``.

    Text elements are trimmed to the slice. A child holding no characters
    (tab, break, drawing) belongs to the slice containing its offset; one
    at the very end of the run belongs to the last slice. Returns an empty
    list when the run holds nothing but text.
    """
    if run.element is None:
        return []
    total = len(run.text)
    stop = total if end is None else end
    text_tags = (qn("w:t"), qn("w:delText"))

    content: list[etree._Element] = []
    has_other = False
    pos = 0
    for r in _run_elements(run.element):
        for child in r:
            if child.tag == qn("w:rPr"):
                continue
            if child.tag in text_tags:
                text = child.text or ""
                lo, hi = max(start, pos), min(stop, pos + len(text))
                if lo < hi:
                    tag = "w:delText" if child.tag == qn("w:delText") else "w:t"
                    content.append(create_text_element(tag, text[lo - pos:hi - pos]))
                pos += len(text)
            elif start <= pos < stop or pos == stop == total:
                content.append(copy.deepcopy(child))
                has_other = True
    return content if has_other else []


def slice_run(run: Run, start: int, end: int | None = None) -> Run:
    """Return a text run holding ``run.text[start:end]``.

    The whole run is returned unchanged (source element included) when the
    slice covers all of it. A partial slice is rebuilt without run
    properties; non-text content such as tabs is carried into the slice
    it falls in.
    """
    if isinstance(run, ContainerRun) and run.text[start:end] == run.text:
        return run
    if not isinstance(run, TEXT_RUNS):
        raise TypeError(f"Cannot slice {type(run).__name__}")
    text = run.text[start:end]
    if text == run.text:
        return run

    content = _sliced_content(run, start, end)
    piece = dataclasses.replace(run, text=text, element=None)
    if content:
        r = create_element("w:r")
        r.extend(content)
        if isinstance(run, TextRun):
            piece.element = r
        else:
            wrapper = create_element("w:ins" if isinstance(run, InsertedRun) else "w:del", _revision_attrs(piece))
            wrapper.append(r)
            piece.element = wrapper
    return piece


def build_deletion(runs: list[TextRun], revision_id: int, author: str, date: str | None) -> DeletedRun:
    """Wrap plain runs in one tracked deletion, keeping all of their content.

    Source runs are copied whole, with ``w:t`` renamed to ``w:delText`` and
    ``w:instrText`` to ``w:delInstrText``.
    """
    deletion = DeletedRun("".join(run.text for run in runs), revision_id, author, date)
    wrapper = create_element("w:del", _revision_attrs(deletion))
    for run in runs:
        if run.element is None:
            if not run.text:
                continue
            r = create_element("w:r")
            r.append(create_text_element("w:delText", run.text))
        else:
            r = copy.deepcopy(run.element)
            for t in list(r.iter(qn("w:t"))):
                t.tag = qn("w:delText")
            for instr in list(r.iter(qn("w:instrText"))):
                instr.tag = qn("w:delInstrText")
        wrapper.append(r)
    deletion.element = wrapper
    return deletion


def _int_attr(elem: etree._Element, name: str = "w:id") -> int:
    value = elem.get(qn(name), "0")
    try:
        return int(value)
    except ValueError:
        return 0


def _collect_text(elem: etree._Element, tag: str) -> str:
    return "".join(t.text or "" for t in elem.iter(qn(tag)))


def decode_run(elem: etree._Element) -> Run:
    """Decode one direct child of ``w:p`` into a typed run."""
    tag = elem.tag
    if tag == qn("w:r"):
        ref = elem.find(qn("w:commentReference"))
        if ref is not None:
            return CommentReference(_int_attr(ref), element=elem)
        return TextRun(_collect_text(elem, "w:t"), element=elem)
    if tag == qn("w:ins"):
        return InsertedRun(
            text=_collect_text(elem, "w:t"),
            revision_id=_int_attr(elem),
            author=elem.get(qn("w:author"), "Unknown"),
            date=elem.get(qn("w:date")),
            element=elem,
        )
    if tag == qn("w:del"):
        return DeletedRun(
            text=_collect_text(elem, "w:delText"),
            revision_id=_int_attr(elem),
            author=elem.get(qn("w:author"), "Unknown"),
            date=elem.get(qn("w:date")),
            element=elem,
        )
    if tag == qn("w:commentRangeStart"):
        return CommentRangeStart(_int_attr(elem), element=elem)
    if tag == qn("w:commentRangeEnd"):
        return CommentRangeEnd(_int_attr(elem), element=elem)
    if tag in CONTAINER_TAGS:
        return ContainerRun(get_text_content(elem), element=elem)
    return OpaqueNode(elem)


def _revision_attrs(run: InsertedRun | DeletedRun) -> dict[str, str]:
    attrs = {"w:id": str(run.revision_id), "w:author": run.author}
    if run.date:
        attrs["w:date"] = run.date
    return attrs


def encode_run(run: Run) -> etree._Element:
    """Build the XML for a run, re-using its source element when it has one."""
    if run.element is not None:
        return run.element

    if isinstance(run, TextRun):
        r = create_element("w:r")
        r.append(create_text_element("w:t", run.text))
        return r
    if isinstance(run, InsertedRun):
        ins = create_element("w:ins", _revision_attrs(run))
        r = create_element("w:r")
        r.append(create_text_element("w:t", run.text))
        ins.append(r)
        return ins
    if isinstance(run, DeletedRun):
        deletion = create_element("w:del", _revision_attrs(run))
        r = create_element("w:r")
        r.append(create_text_element("w:delText", run.text))
        deletion.append(r)
        return deletion
    if isinstance(run, CommentRangeStart):
        return create_element("w:commentRangeStart", {"w:id": str(run.comment_id)})
    if isinstance(run, CommentRangeEnd):
        return create_element("w:commentRangeEnd", {"w:id": str(run.comment_id)})
    if isinstance(run, CommentReference):
        r = create_element("w:r")
        r.append(create_element("w:commentReference", {"w:id": str(run.comment_id)}))
        return r
    raise TypeError(f"Unsupported run type: {type(run).__name__}")


@dataclass
class Paragraph:
    """A body paragraph addressed by its position in the document."""

    index: int
    runs: list[Run]
    style: str | None = None
    element: etree._Element | None = field(default=None, repr=False, compare=False)
    dirty: bool = field(default=False, compare=False)

    @property
    def text(self) -> str:
        return rendered_text(self.runs)

    def replace_runs(self, runs: list[Run]) -> None:
        self.runs = list(runs)
        self.dirty = True

    @classmethod
    def decode(cls, index: int, elem: etree._Element) -> "Paragraph":
        runs = [decode_run(child) for child in elem if child.tag != qn("w:pPr")]
        return cls(index=index, runs=runs, style=get_paragraph_style(elem), element=elem)

    def encode(self) -> etree._Element:
        """Write the run list back into the paragraph element.

        Paragraph properties (``w:pPr``) stay in place; every other child is
        replaced by the encoded runs in order.
        """
        if self.element is None:
            self.element = create_element("w:p")

        new_children = [encode_run(run) for run in self.runs]
        for child in list(self.element):
            if child.tag != qn("w:pPr"):
                self.element.remove(child)
        for child in new_children:
            self.element.append(child)
        self.dirty = False
        return self.element


def decode_body(document: etree._Element) -> list[Paragraph]:
    """Decode every body paragraph, in document order."""
    return [Paragraph.decode(idx, elem) for idx, elem in iter_paragraphs(document)]
