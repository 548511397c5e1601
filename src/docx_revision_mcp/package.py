"""Loading and saving of .docx packages.

A package is held in memory as its raw ZIP entries. XML parts are decoded on
demand and only re-serialized when marked dirty, so every part an operation
does not touch is written back with its original bytes and entry metadata.
"""

from __future__ import annotations

import copy
import logging
import os
import tempfile
import zipfile
from pathlib import Path

from lxml import etree

from .errors import (
    CorruptPackageError,
    NotAFileError,
    UnreadableError,
    UnwritableError,
)
from .xml_helpers import parse_xml, serialize_xml

logger = logging.getLogger(__name__)

DOCUMENT_PART = "word/document.xml"
COMMENTS_PART = "word/comments.xml"
CONTENT_TYPES_PART = "[Content_Types].xml"
DOCUMENT_RELS_PART = "word/_rels/document.xml.rels"


class DocxPackage:
    """In-memory view of a .docx ZIP container."""

    def __init__(self, entries: dict[str, tuple[zipfile.ZipInfo, bytes]], path: Path | None = None):
        self.path = path
        self._entries = entries
        self._xml: dict[str, etree._Element] = {}
        self._dirty: set[str] = set()

    @classmethod
    def load(cls, path: str | Path) -> "DocxPackage":
        """Read every entry of the archive at ``path``.

        Raises:
            NotAFileError: Path does not exist or is not a regular file
            UnreadableError: File cannot be opened for reading
            CorruptPackageError: Not a ZIP archive, or the body part is missing
        """
        path = Path(path)
        if not path.is_file():
            raise NotAFileError(f"File not found: {path}")

        entries: dict[str, tuple[zipfile.ZipInfo, bytes]] = {}
        try:
            with zipfile.ZipFile(path, "r") as zf:
                for info in zf.infolist():
                    entries[info.filename] = (info, zf.read(info))
        except PermissionError as e:
            raise UnreadableError(f"Permission denied: {path}") from e
        except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError) as e:
            raise CorruptPackageError(f"Document file is corrupted or invalid: {path}") from e
        except OSError as e:
            raise UnreadableError(f"Failed to read {path}: {e}") from e

        if DOCUMENT_PART not in entries:
            raise CorruptPackageError(f"Missing main document part {DOCUMENT_PART} in {path}")

        logger.debug("Loaded %d parts from %s", len(entries), path)
        return cls(entries, path)

    def has_part(self, name: str) -> bool:
        return name in self._entries or name in self._xml

    def get_xml(self, name: str) -> etree._Element | None:
        """Decode an XML part, caching the root element.

        Returns None when the part does not exist.
        """
        if name in self._xml:
            return self._xml[name]
        if name not in self._entries:
            return None
        try:
            root = parse_xml(self._entries[name][1])
        except etree.XMLSyntaxError as e:
            raise CorruptPackageError(f"Failed to parse {name}: {e}") from e
        logger.debug("Decoded part %s", name)
        self._xml[name] = root
        return root

    def set_xml(self, name: str, root: etree._Element) -> None:
        """Add or replace an XML part; it will be serialized on save."""
        self._xml[name] = root
        self._dirty.add(name)

    def mark_dirty(self, name: str) -> None:
        if name not in self._xml:
            raise KeyError(f"Part {name} has not been decoded")
        self._dirty.add(name)

    @property
    def dirty_parts(self) -> set[str]:
        return set(self._dirty)

    def _write(self, fileobj) -> None:
        with zipfile.ZipFile(fileobj, "w", zipfile.ZIP_DEFLATED) as zf_out:
            for name, (info, data) in self._entries.items():
                if name in self._dirty:
                    data = serialize_xml(self._xml[name])
                zf_out.writestr(copy.copy(info), data)

            # New parts created during this session
            for name in sorted(self._dirty):
                if name not in self._entries:
                    zf_out.writestr(name, serialize_xml(self._xml[name]))

    def save(self, path: str | Path | None = None) -> Path:
        """Write the package, atomically replacing the target file.

        Writes to a temporary file next to the target and moves it into place.

        Raises:
            UnwritableError: The temporary file could not be written or moved
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise UnwritableError("No target path given for save")

        try:
            fd, tmp_name = tempfile.mkstemp(suffix=".docx", dir=target.parent)
        except OSError as e:
            raise UnwritableError(f"Cannot write to {target.parent}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as tmp:
                self._write(tmp)
            if target.exists():
                # Keep the original file mode
                os.chmod(tmp_path, target.stat().st_mode & 0o7777)
            os.replace(tmp_path, target)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise UnwritableError(f"Failed to write {target}: {e}") from e
        except Exception:
            # Clean up temp file on error
            tmp_path.unlink(missing_ok=True)
            raise

        logger.info("Saved %s (%d modified parts)", target, len(self._dirty))
        return target
