"""Exceptions raised while reading and rendering commercial documents."""


class DocumentError(Exception):
    """Base class for document generation errors."""

    code: str = "DOCUMENT_ERROR"


class InvalidDocumentError(DocumentError):
    """Document or company data could not be read."""

    code: str = "INVALID_DOCUMENT"

    def __init__(self, message, errors=None):
        self.errors = errors or []
        super().__init__(message)


class RenderError(DocumentError):
    """The PDF could not be produced."""

    code: str = "RENDER_ERROR"

    def __init__(self, numero, reason):
        self.numero = numero
        self.reason = reason
        super().__init__(f"Cannot render document {numero}: {reason}")
