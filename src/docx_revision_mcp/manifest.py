"""Keep [Content_Types].xml and document relationships in step with the comments part."""

from __future__ import annotations

import logging
import re

from lxml import etree

from .errors import CorruptPackageError
from .package import CONTENT_TYPES_PART, DOCUMENT_RELS_PART, DocxPackage
from .xml_helpers import CT_NS, PR_NS

logger = logging.getLogger(__name__)

COMMENTS_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.comments+xml"
COMMENTS_REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/comments"

_RID_PATTERN = re.compile(r"^rId(\d+)$")


def ensure_comments_content_type(package: DocxPackage) -> bool:
    """Add the comments override to [Content_Types].xml if not present.

    Returns True when the manifest was changed.
    """
    content_types = package.get_xml(CONTENT_TYPES_PART)
    if content_types is None:
        raise CorruptPackageError(f"Missing {CONTENT_TYPES_PART}")

    # Check if comments override exists
    has_comments = any(
        elem.get("PartName") == "/word/comments.xml"
        for elem in content_types.iter(f"{{{CT_NS}}}Override")
    )
    if has_comments:
        return False

    etree.SubElement(
        content_types,
        f"{{{CT_NS}}}Override",
        PartName="/word/comments.xml",
        ContentType=COMMENTS_CONTENT_TYPE,
    )
    package.mark_dirty(CONTENT_TYPES_PART)
    logger.info("Registered comments part in %s", CONTENT_TYPES_PART)
    return True


def next_relationship_id(rels: etree._Element) -> str:
    """Return an rId one higher than any numeric rId in use."""
    existing_ids = []
    for elem in rels.iter(f"{{{PR_NS}}}Relationship"):
        match = _RID_PATTERN.match(elem.get("Id", ""))
        if match:
            existing_ids.append(int(match.group(1)))
    return f"rId{max(existing_ids, default=0) + 1}"


def ensure_comments_relationship(package: DocxPackage) -> bool:
    """Add the comments relationship to word/_rels/document.xml.rels if missing.

    Returns True when the relationships part was changed or created.
    """
    rels = package.get_xml(DOCUMENT_RELS_PART)
    created = rels is None
    if rels is None:
        rels = etree.Element(f"{{{PR_NS}}}Relationships", nsmap={None: PR_NS})

    # Check if comments relationship exists
    has_comments_rel = any(
        elem.get("Type") == COMMENTS_REL_TYPE for elem in rels.iter(f"{{{PR_NS}}}Relationship")
    )
    if has_comments_rel:
        return False

    rel_id = next_relationship_id(rels)
    etree.SubElement(
        rels,
        f"{{{PR_NS}}}Relationship",
        Id=rel_id,
        Type=COMMENTS_REL_TYPE,
        Target="comments.xml",
    )
    if created:
        package.set_xml(DOCUMENT_RELS_PART, rels)
    else:
        package.mark_dirty(DOCUMENT_RELS_PART)
    logger.info("Added comments relationship %s", rel_id)
    return True


def ensure_comments_registered(package: DocxPackage) -> None:
    """Make both manifests reference the comments part. Idempotent."""
    ensure_comments_content_type(package)
    ensure_comments_relationship(package)
