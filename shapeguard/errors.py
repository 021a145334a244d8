"""Exceptions raised at compile and decode time.

Validation itself never raises: non-conformance is a ``False`` result.
"""

from typing import Optional

from shapeguard.models import ErrorCode


class ShapeguardError(Exception):
    """Base for all engine errors."""

    def __init__(self, code: ErrorCode, message: str, path: Optional[str] = None):
        self.code = code
        self.message = message
        self.path = path
        super().__init__(f"[{code.value}] {message}" + (f" (at {path})" if path else ""))


class CompileError(ShapeguardError):
    """Pattern is not one of the recognized forms, or a key/builder argument is malformed."""


class DecodeError(ShapeguardError):
    """A JSON Schema fragment has no native pattern representation."""
