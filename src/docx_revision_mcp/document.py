"""In-memory document: decoded body paragraphs, comments part and id allocation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from lxml import etree

from .errors import CorruptPackageError, ParagraphNotFoundError
from .model import Paragraph, decode_body
from .package import COMMENTS_PART, DOCUMENT_PART, DocxPackage
from .xml_helpers import get_max_id, qn

logger = logging.getLogger(__name__)


def current_datetime() -> str:
    """Get current datetime in OOXML format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class IdAllocator:
    """Hands out annotation ids for comments and revisions.

    Seeded from the largest ``w:id`` already present, then strictly
    increasing, so ids are unique within the document no matter how quickly
    they are requested.
    """

    def __init__(self, start: int = 0):
        self._next = start

    @classmethod
    def for_roots(cls, *roots: etree._Element | None) -> "IdAllocator":
        max_id = max((get_max_id(root, "w:id") for root in roots), default=-1)
        return cls(max_id + 1)

    def allocate(self) -> int:
        value = self._next
        self._next += 1
        logger.debug("Allocated annotation id %d", value)
        return value


class WordDocument:
    """A loaded package with its body decoded into paragraphs.

    Mutations happen on :class:`Paragraph` objects; :meth:`commit` writes any
    changed paragraphs back into the body XML and marks the affected parts for
    re-serialization.
    """

    def __init__(self, package: DocxPackage):
        self.package = package
        body_root = package.get_xml(DOCUMENT_PART)
        if body_root is None or body_root.find(qn("w:body")) is None:
            raise CorruptPackageError("Main document part has no w:body element")
        self.body_root = body_root
        self.paragraphs: list[Paragraph] = decode_body(body_root)
        self.ids = IdAllocator.for_roots(body_root, self.comments_root)
        self._comments_changed = False

    @classmethod
    def load(cls, path: str | Path) -> "WordDocument":
        return cls(DocxPackage.load(path))

    @property
    def comments_root(self) -> etree._Element | None:
        return self.package.get_xml(COMMENTS_PART)

    def set_comments_root(self, root: etree._Element) -> None:
        self.package.set_xml(COMMENTS_PART, root)

    def mark_comments_changed(self) -> None:
        self._comments_changed = True

    def paragraph(self, index: int) -> Paragraph:
        """Return the paragraph at ``index``.

        Raises:
            ParagraphNotFoundError: If ``index`` is past the last paragraph
        """
        if index < 0 or index >= len(self.paragraphs):
            raise ParagraphNotFoundError(
                f"Paragraph index {index} is out of range. Document has "
                f"{len(self.paragraphs)} paragraphs (0-{len(self.paragraphs) - 1})"
            )
        return self.paragraphs[index]

    def commit(self) -> None:
        """Encode changed paragraphs and flag modified parts."""
        changed = [p for p in self.paragraphs if p.dirty]
        for para in changed:
            para.encode()
        if changed:
            self.package.mark_dirty(DOCUMENT_PART)
        if self._comments_changed:
            self.package.mark_dirty(COMMENTS_PART)
            self._comments_changed = False
        logger.debug("Committed %d paragraph(s)", len(changed))

    def save(self, path: str | Path | None = None) -> Path:
        self.commit()
        return self.package.save(path)
