"""Pytest configuration and fixtures."""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Callable

import pytest
from lxml import etree

from docx_revision_mcp.config import get_settings


# OOXML namespace constants
W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
W14_NS = "http://schemas.microsoft.com/office/word/2010/wordml"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
CP_NS = "http://schemas.openxmlformats.org/package/2006/metadata/core-properties"
DC_NS = "http://purl.org/dc/elements/1.1/"
CT_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
PR_NS = "http://schemas.openxmlformats.org/package/2006/relationships"

COMMENTS_REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/comments"


SETTINGS_ENV = (
    "DOCX_REVISION_AUTHOR",
    "DOCX_REVISION_INITIALS",
    "DOCX_REVISION_DIFF",
    "DOCX_REVISION_LOG_LEVEL",
)


def w(tag: str) -> str:
    return f"{{{W_NS}}}{tag}"


def create_content_types(has_comments: bool = False) -> bytes:
    """Create [Content_Types].xml."""
    root = etree.Element(
        f"{{{CT_NS}}}Types",
        nsmap={None: CT_NS},
    )

    # Default extensions
    etree.SubElement(
        root,
        f"{{{CT_NS}}}Default",
        Extension="rels",
        ContentType="application/vnd.openxmlformats-package.relationships+xml",
    )
    etree.SubElement(
        root,
        f"{{{CT_NS}}}Default",
        Extension="xml",
        ContentType="application/xml",
    )

    # Override for specific parts
    etree.SubElement(
        root,
        f"{{{CT_NS}}}Override",
        PartName="/word/document.xml",
        ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml",
    )
    etree.SubElement(
        root,
        f"{{{CT_NS}}}Override",
        PartName="/docProps/core.xml",
        ContentType="application/vnd.openxmlformats-package.core-properties+xml",
    )
    if has_comments:
        etree.SubElement(
            root,
            f"{{{CT_NS}}}Override",
            PartName="/word/comments.xml",
            ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.comments+xml",
        )

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


def create_rels() -> bytes:
    """Create _rels/.rels."""
    root = etree.Element(
        f"{{{PR_NS}}}Relationships",
        nsmap={None: PR_NS},
    )

    etree.SubElement(
        root,
        f"{{{PR_NS}}}Relationship",
        Id="rId1",
        Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument",
        Target="word/document.xml",
    )
    etree.SubElement(
        root,
        f"{{{PR_NS}}}Relationship",
        Id="rId2",
        Type="http://schemas.openxmlformats.org/package/2006/relationships/metadata/core-properties",
        Target="docProps/core.xml",
    )

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


def create_document_rels(has_comments: bool = False) -> bytes:
    """Create word/_rels/document.xml.rels with a styles relationship."""
    root = etree.Element(
        f"{{{PR_NS}}}Relationships",
        nsmap={None: PR_NS},
    )

    etree.SubElement(
        root,
        f"{{{PR_NS}}}Relationship",
        Id="rId1",
        Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/styles",
        Target="styles.xml",
    )
    etree.SubElement(
        root,
        f"{{{PR_NS}}}Relationship",
        Id="rIdTheme",
        Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/theme",
        Target="theme/theme1.xml",
    )
    if has_comments:
        etree.SubElement(
            root,
            f"{{{PR_NS}}}Relationship",
            Id="rId2",
            Type=COMMENTS_REL_TYPE,
            Target="comments.xml",
        )

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


def create_core_props(author: str = "Test Author") -> bytes:
    """Create docProps/core.xml."""
    root = etree.Element(f"{{{CP_NS}}}coreProperties", nsmap={"cp": CP_NS, "dc": DC_NS})
    creator = etree.SubElement(root, f"{{{DC_NS}}}creator")
    creator.text = author
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


def _add_text_run(parent: etree._Element, text: str, bold: bool = False) -> etree._Element:
    r = etree.SubElement(parent, w("r"))
    if bold:
        rpr = etree.SubElement(r, w("rPr"))
        etree.SubElement(rpr, w("b"))
    t = etree.SubElement(r, w("t"))
    t.text = text
    if text != text.strip():
        t.set("{http://www.w3.org/XML/1998/namespace}space", "preserve")
    return r


def create_document(paragraphs: list[list[str] | str], styles: dict[int, str] | None = None) -> bytes:
    """Create word/document.xml.

    Each paragraph is a string (one run) or a list of strings (one run each).
    """
    nsmap = {
        "w": W_NS,
        "r": R_NS,
    }
    styles = styles or {}

    root = etree.Element(w("document"), nsmap=nsmap)
    body = etree.SubElement(root, w("body"))

    for idx, para in enumerate(paragraphs):
        p = etree.SubElement(body, w("p"))
        if idx in styles:
            ppr = etree.SubElement(p, w("pPr"))
            etree.SubElement(ppr, w("pStyle"), {w("val"): styles[idx]})
        pieces = [para] if isinstance(para, str) else para
        for piece in pieces:
            if piece:
                _add_text_run(p, piece)

    etree.SubElement(body, w("sectPr"))
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


def create_document_with_comments(
    paragraphs: list[str],
    comment_anchors: list[tuple[int, str, int]],  # (para_idx, anchor_text, comment_id)
) -> bytes:
    """Create document.xml with comment range markers."""
    nsmap = {
        "w": W_NS,
        "w14": W14_NS,
        "r": R_NS,
    }

    root = etree.Element(w("document"), nsmap=nsmap)
    body = etree.SubElement(root, w("body"))

    for para_idx, para_text in enumerate(paragraphs):
        p = etree.SubElement(body, w("p"))
        remaining_text = para_text
        for anchor_para_idx, anchor_text, comment_id in comment_anchors:
            if anchor_para_idx != para_idx or anchor_text not in remaining_text:
                continue
            before, after = remaining_text.split(anchor_text, 1)
            if before:
                _add_text_run(p, before)
            etree.SubElement(p, w("commentRangeStart"), {w("id"): str(comment_id)})
            _add_text_run(p, anchor_text)
            etree.SubElement(p, w("commentRangeEnd"), {w("id"): str(comment_id)})
            r = etree.SubElement(p, w("r"))
            etree.SubElement(r, w("commentReference"), {w("id"): str(comment_id)})
            remaining_text = after

        # Any remaining text
        if remaining_text:
            _add_text_run(p, remaining_text)

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


def create_comments_xml(
    comments: list[tuple[int, str, str, str]],  # (id, author, date, text)
) -> bytes:
    """Create word/comments.xml."""
    nsmap = {
        "w": W_NS,
        "w14": W14_NS,
    }

    root = etree.Element(w("comments"), nsmap=nsmap)

    for comment_id, author, date, text in comments:
        comment = etree.SubElement(
            root,
            w("comment"),
            {
                w("id"): str(comment_id),
                w("author"): author,
                w("date"): date,
                w("initials"): "".join(part[0] for part in author.split()),
            },
        )
        p = etree.SubElement(comment, w("p"))
        _add_text_run(p, text)

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


def create_document_with_track_changes() -> bytes:
    """Create document.xml whose second paragraph holds an insertion and a deletion."""
    nsmap = {
        "w": W_NS,
        "r": R_NS,
    }

    root = etree.Element(w("document"), nsmap=nsmap)
    body = etree.SubElement(root, w("body"))

    p0 = etree.SubElement(body, w("p"))
    _add_text_run(p0, "The children showed attachment behaviors.")

    p1 = etree.SubElement(body, w("p"))
    _add_text_run(p1, "Results ")
    deletion = etree.SubElement(
        p1,
        w("del"),
        {w("id"): "5", w("author"): "Dr. Smith", w("date"): "2025-01-16T09:20:00Z"},
    )
    r = etree.SubElement(deletion, w("r"))
    del_text = etree.SubElement(r, w("delText"))
    del_text.text = "invariably"
    ins = etree.SubElement(
        p1,
        w("ins"),
        {w("id"): "6", w("author"): "Dr. Smith", w("date"): "2025-01-16T09:20:00Z"},
    )
    _add_text_run(ins, "frequently")
    _add_text_run(p1, " vary.")

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


def create_document_with_hyperlink() -> bytes:
    """Create document.xml whose first paragraph holds a hyperlink."""
    nsmap = {
        "w": W_NS,
        "r": R_NS,
    }

    root = etree.Element(w("document"), nsmap=nsmap)
    body = etree.SubElement(root, w("body"))

    p0 = etree.SubElement(body, w("p"))
    _add_text_run(p0, "See ")
    link = etree.SubElement(p0, w("hyperlink"), {f"{{{R_NS}}}id": "rIdLink"})
    _add_text_run(link, "the docs")
    _add_text_run(p0, " for details.")

    p1 = etree.SubElement(body, w("p"))
    _add_text_run(p1, "No links here.")

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)


def write_docx(
    path: Path,
    document_xml: bytes,
    comments_xml: bytes | None = None,
) -> None:
    """Write a complete docx file."""
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        # Required parts
        zf.writestr("[Content_Types].xml", create_content_types(has_comments=comments_xml is not None))
        zf.writestr("_rels/.rels", create_rels())
        zf.writestr("word/document.xml", document_xml)
        zf.writestr(
            "word/_rels/document.xml.rels",
            create_document_rels(has_comments=comments_xml is not None),
        )
        zf.writestr("docProps/core.xml", create_core_props())
        # An untouched binary part, stored uncompressed
        zf.writestr("word/media/image1.png", b"\x89PNG\r\n\x1a\nnot-really-an-image", zipfile.ZIP_STORED)

        # Optional parts
        if comments_xml:
            zf.writestr("word/comments.xml", comments_xml)


def read_part(path: Path, name: str) -> bytes:
    with zipfile.ZipFile(path) as zf:
        return zf.read(name)


def read_xml_part(path: Path, name: str) -> etree._Element:
    return etree.fromstring(read_part(path, name))


@pytest.fixture
def make_docx(tmp_path: Path) -> Callable[..., Path]:
    """Factory: write a document with the given paragraphs and return its path."""

    def _make(paragraphs: list[list[str] | str], name: str = "doc.docx", styles: dict[int, str] | None = None) -> Path:
        path = tmp_path / name
        write_docx(path, create_document(paragraphs, styles))
        return path

    return _make


@pytest.fixture
def simple_docx(make_docx: Callable[..., Path]) -> Path:
    """Create a simple document with no comments or track changes."""
    return make_docx(
        [
            "This is the first paragraph of the document.",
            "The second paragraph contains more text for testing purposes.",
            "Finally, the third paragraph concludes our simple test document.",
        ],
        name="simple.docx",
        styles={0: "Heading1"},
    )


@pytest.fixture
def fox_docx(make_docx: Callable[..., Path]) -> Path:
    """Paragraph 0 split over three runs: "The quick fox jumps."."""
    return make_docx([["The ", "quick fox", " jumps."], "Hello world"], name="fox.docx")


@pytest.fixture
def docx_with_comments(tmp_path: Path) -> Path:
    """Create a document with two anchored comments."""
    path = tmp_path / "with_comments.docx"

    paragraphs = [
        "This is the introduction to our research paper.",
        "The study examines disorganized attachment patterns in early childhood.",
        "Our methodology follows established protocols from previous research.",
    ]

    # Comment anchors: (para_idx, anchor_text, comment_id)
    comment_anchors = [
        (1, "disorganized attachment patterns", 0),
        (2, "established protocols", 1),
    ]

    # Comments: (id, author, date, text)
    comments = [
        (0, "Dr. Smith", "2025-01-16T09:15:00Z", "Consider citing Main & Hesse here"),
        (1, "Dr. Jones", "2025-01-17T10:00:00Z", "Which protocols specifically?"),
    ]

    write_docx(
        path,
        create_document_with_comments(paragraphs, comment_anchors),
        comments_xml=create_comments_xml(comments),
    )
    return path


@pytest.fixture
def docx_with_track_changes(tmp_path: Path) -> Path:
    """Create a document with an existing insertion (id 6) and deletion (id 5)."""
    path = tmp_path / "with_track_changes.docx"
    write_docx(path, create_document_with_track_changes())
    return path


@pytest.fixture
def docx_with_hyperlink(tmp_path: Path) -> Path:
    """Paragraph 0 reads "See the docs for details." with "the docs" inside a hyperlink."""
    path = tmp_path / "with_hyperlink.docx"
    write_docx(path, create_document_with_hyperlink())
    return path


@pytest.fixture(autouse=True)
def default_settings(monkeypatch: pytest.MonkeyPatch):
    """Run every test with default settings, regardless of the caller's environment."""
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
