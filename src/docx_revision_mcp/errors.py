"""Error taxonomy for document revision operations.

Every error carries a stable machine-readable ``code`` alongside its message.
Validation errors describe bad input shape and are raised before any file is
read; document errors describe problems with the package itself or with the
content an operation refers to.
"""

from __future__ import annotations


class DocxRevisionError(Exception):
    """Base class for all errors raised by this package."""

    code = "OPERATION_FAILED"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class ValidationError(DocxRevisionError):
    """Input failed validation before the document was touched."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str, code: str | None = None):
        super().__init__(message, code)
        self.field = field


class MissingTextSelectionError(ValidationError):
    """Neither or both anchor forms were supplied."""

    code = "MISSING_TEXT_SELECTION"

    def __init__(self, message: str = "Provide either anchor text or a start/end position pair"):
        super().__init__(message, field="text")


class DocumentError(DocxRevisionError):
    """The document or its content could not satisfy the request."""

    code = "DOCUMENT_ERROR"


class PackageError(DocumentError):
    """The package container could not be loaded or saved."""

    code = "PACKAGE_ERROR"


class NotAFileError(PackageError):
    """Path does not exist or is not a regular file."""

    code = "NOT_A_FILE"


class UnreadableError(PackageError):
    """File exists but cannot be read."""

    code = "UNREADABLE"


class CorruptPackageError(PackageError):
    """Archive is invalid, a part is malformed, or the body part is missing."""

    code = "CORRUPT_FILE"


class UnwritableError(PackageError):
    """The target file could not be replaced."""

    code = "UNWRITABLE"


class NotWritableError(DocumentError):
    """File is read-only or locked by another process."""

    code = "NOT_WRITABLE"


class ParagraphNotFoundError(DocumentError):
    """Paragraph index is beyond the end of the document."""

    code = "PARAGRAPH_NOT_FOUND"


class TextNotFoundError(DocumentError):
    """Text was not found in the paragraph."""

    code = "TEXT_NOT_FOUND"


class RangeNotFoundError(DocumentError):
    """Character range does not fall inside the paragraph's text."""

    code = "RANGE_NOT_FOUND"


class InvalidRangeError(DocumentError):
    """Character range is malformed (negative start or end <= start)."""

    code = "INVALID_RANGE"


class CommentNotFoundError(DocumentError):
    """Comment with the given ID was not found."""

    code = "COMMENT_NOT_FOUND"


class RevisionConflictError(DocumentError):
    """Requested edit overlaps text that already carries tracked changes."""

    code = "REVISION_CONFLICT"


class ProtectedContentError(DocumentError):
    """Requested edit cuts into or rewrites a hyperlink, smart tag or field."""

    code = "PROTECTED_CONTENT"
