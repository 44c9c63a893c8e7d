"""Failures raised by the content store."""

from __future__ import annotations

from typing import Optional


class ContentError(RuntimeError):
    """Base class for structured content store failures."""

    kind = "error"

    def __init__(self, message: str, *, domain: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.domain = domain


class ValidationFailure(ContentError):
    """Raised when a payload is rejected before any I/O."""

    kind = "validation"


class NotFound(ContentError):
    """Raised when the requested record does not exist."""

    kind = "not_found"


class ConflictFailure(ContentError):
    """Raised when a slug is already used in the domain."""

    kind = "conflict"


class BackendUnavailable(ContentError):
    """Raised when a document or table cannot be read or written."""

    kind = "backend_unavailable"


__all__ = [
    "BackendUnavailable",
    "ConflictFailure",
    "ContentError",
    "NotFound",
    "ValidationFailure",
]
