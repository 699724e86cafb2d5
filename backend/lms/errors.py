"""
Error taxonomy shared by services, stores and the RPC adapter.

Every error carries a stable snake_case ``code`` (e.g. ``course_not_found``)
that the web layer returns as ``detail``. Each class also derives from the
builtin the rest of the code base already catches for that situation
(LookupError for missing records, ValueError for bad input), so callers that
only know the builtins keep working.
"""

from __future__ import annotations

from typing import Optional


class LmsError(Exception):
    """Base class; ``kind`` groups codes for HTTP status mapping."""

    kind = "error"

    def __init__(self, code: str, message: Optional[str] = None) -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message or code.replace("_", " ")


class InputValidationError(LmsError, ValueError):
    kind = "validation"


class NotFoundError(LmsError, LookupError):
    kind = "not_found"


class InvalidRoleError(LmsError, ValueError):
    kind = "invalid_role"


class ConflictError(LmsError, ValueError):
    kind = "conflict"


class BlockedError(LmsError):
    """A delete that is refused while dependent records exist."""

    kind = "blocked"


__all__ = [
    "LmsError",
    "InputValidationError",
    "NotFoundError",
    "InvalidRoleError",
    "ConflictError",
    "BlockedError",
]
