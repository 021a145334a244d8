"""String builder: charset and length constraints rendered as a regex.

    string.of("a-z")            any length of lowercase letters
    string.of(8, "0-9a-f")      exactly 8 hex digits
    string.of(1, 16, "a-z_")    1 to 16 characters
    string.of(3, None)          3 or more default-charset characters
"""

import re
from typing import Any, Optional

from shapeguard.base import BaseValidator
from shapeguard.config import get_settings
from shapeguard.errors import CompileError
from shapeguard.models import ErrorCode, Mismatch, StringConstraints


def _require_length(value: Any, allow_none: bool = False) -> None:
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise CompileError(
            ErrorCode.BUILDER_INVALID_ARGUMENT,
            f"string.of() lengths must be non-negative integers, got {value!r}",
        )


class StringValidator(BaseValidator):
    """Strings, optionally restricted to ``^[charset]{min,max}$`` (searched like any regex pattern)."""

    def __init__(self, constraints: Optional[StringConstraints] = None):
        self.constraints = constraints or StringConstraints()
        self._regex: Optional[re.Pattern] = None
        if self.constraints.regex is not None:
            try:
                self._regex = re.compile(self.constraints.regex)
            except re.error as e:
                raise CompileError(
                    ErrorCode.BUILDER_INVALID_ARGUMENT,
                    f"charset {self.constraints.charset!r} does not form a valid regex: {e}",
                ) from e

    def of(self, *args: Any) -> "StringValidator":
        """Constrain charset and length: ``of(charset)``, ``of(length, charset)``, ``of(min, max, charset)``.

        A trailing string argument is the charset (a regex character-class
        fragment); without one the configured default charset applies.
        """
        if self.constraints.charset is not None:
            raise CompileError(ErrorCode.BUILDER_INVALID_ARGUMENT, "string.of() was already applied")

        lengths = list(args)
        charset = get_settings().DEFAULT_CHARSET
        if lengths and isinstance(lengths[-1], str):
            charset = lengths.pop()
        if not charset:
            raise CompileError(ErrorCode.BUILDER_INVALID_ARGUMENT, "string.of() charset must not be empty")

        if not lengths:
            min_length, max_length = 0, None
        elif len(lengths) == 1:
            _require_length(lengths[0])
            min_length = max_length = lengths[0]
        elif len(lengths) == 2:
            _require_length(lengths[0])
            _require_length(lengths[1], allow_none=True)
            min_length, max_length = lengths
            if max_length is not None and min_length > max_length:
                raise CompileError(
                    ErrorCode.BUILDER_INVALID_ARGUMENT,
                    f"string.of() min length {min_length} exceeds max length {max_length}",
                )
        else:
            raise CompileError(ErrorCode.BUILDER_INVALID_ARGUMENT, f"string.of() takes at most 3 arguments, got {len(args)}")

        return StringValidator(self.constraints.model_copy(update={
            "charset": charset,
            "min_length": min_length,
            "max_length": max_length,
        }))

    @property
    def name(self) -> str:
        if self._regex is None:
            return "string"
        return f"string matching /{self._regex.pattern}/"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if not isinstance(value, str):
            return self._fail(mismatches, path, "string", "a string", value)
        if self._regex is not None and self._regex.search(value) is None:
            return self._fail(mismatches, path, "charset", self.name, value)
        return True

    def describe(self) -> dict:
        descriptor: dict = {"type": "string"}
        if self.constraints.regex is not None:
            descriptor["pattern"] = self.constraints.regex
        return descriptor


# Module-level singleton
string = StringValidator()
