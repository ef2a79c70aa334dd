"""
Errors raised by the protolens pipeline.

Conflicts between an overlay edit and a changed source are not errors;
they are reported as ConflictEntry data by the merge step.
"""

from typing import Optional


class ProtolensError(Exception):
    """Base class for all pipeline failures."""


class ParseError(ProtolensError):
    """Source text could not be parsed well enough for a rewrite."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class CompileError(ProtolensError):
    """The bundler rejected the module. The message is shown to the user as-is."""


class DocumentNotFoundError(ProtolensError):
    """A document or one of its screens does not exist or cannot be read."""

    def __init__(self, document_id: str, screen: Optional[str] = None):
        self.document_id = document_id
        self.screen = screen
        where = f"{document_id}/{screen}" if screen else document_id
        super().__init__(f"Document not found: {where}")


class ProtocolError(ProtolensError):
    """A runtime message is malformed or of an unknown type."""
