"""Engine models: error codes, pattern kinds, mismatch records and constraint descriptors.

Mismatches are collected as structured records and only rendered to text at
the presentation boundary (``ErrorReport.messages()``).
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

ROOT_PATH = "$"


class ErrorCode(str, Enum):
    """Error codes carried by CompileError and DecodeError.

    Naming convention: CATEGORY_SPECIFIC_ISSUE
    """

    # Compile errors
    PATTERN_UNRECOGNIZED = "PATTERN_UNRECOGNIZED"
    KEY_MALFORMED = "KEY_MALFORMED"
    KEY_INVALID_REGEX = "KEY_INVALID_REGEX"
    BUILDER_INVALID_ARGUMENT = "BUILDER_INVALID_ARGUMENT"
    SESSION_ALREADY_BOUND = "SESSION_ALREADY_BOUND"

    # Decode errors
    DESCRIPTOR_MALFORMED = "DESCRIPTOR_MALFORMED"
    DESCRIPTOR_UNSUPPORTED = "DESCRIPTOR_UNSUPPORTED"
    DESCRIPTOR_IDENTITY = "DESCRIPTOR_IDENTITY"


class PatternKind(str, Enum):
    """The ten pattern forms, in dispatch order."""

    SCHEMA_CLASS = "schema_class"
    CONSTRUCTOR = "constructor"
    REGEX = "regex"
    LITERAL = "literal"
    OR = "or"
    OBJECT = "object"
    PRIMITIVE = "primitive"
    NULL = "null"
    ANYTHING = "anything"
    SELF = "self"


class Quantifier(str, Enum):
    """Multiplicity attached to an object-pattern key."""

    OPTIONAL = "?"       # 0..1
    ANY = "*"            # 0..*
    AT_LEAST_ONE = "+"   # 1..*
    EXACT = ""           # plain key; required when the name is a literal
    CATCH_ALL = "**"     # bare '*' key, claims properties nobody else matched


class Mismatch(BaseModel):
    """A single conformance failure at one path."""

    path: str = ROOT_PATH
    rule: str
    expected: str
    actual: str
    # One group of mismatches per failed OR branch
    alternatives: list[list["Mismatch"]] = Field(default_factory=list)

    def render(self) -> str:
        """Render this mismatch (and any failed OR branches) as one message."""
        if self.alternatives:
            reasons = " AND ".join(f"({self._render_branch(branch)})" for branch in self.alternatives)
            return f"none of the alternatives matched: {reasons}"
        return f"{self.rule}: expected {self.expected}, got {self.actual}"

    def _render_branch(self, branch: list["Mismatch"]) -> str:
        parts = []
        for mismatch in branch:
            if mismatch.path == self.path:
                parts.append(mismatch.render())
            else:
                parts.append(f"{mismatch.path}: {mismatch.render()}")
        return "; ".join(parts)


class ErrorReport(BaseModel):
    """Outcome of an explanation run; empty when the value conforms."""

    mismatches: list[Mismatch] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.mismatches

    def messages(self) -> dict[str, str]:
        """Render to a ``path -> message`` mapping, joining repeated paths with '; '."""
        rendered: dict[str, str] = {}
        for mismatch in self.mismatches:
            text = mismatch.render()
            if mismatch.path in rendered:
                rendered[mismatch.path] = f"{rendered[mismatch.path]}; {text}"
            else:
                rendered[mismatch.path] = text
        return rendered


# ── Constraint descriptors ──
# Each builder chain step produces a new instance via model_copy(update=...).


class NumberConstraints(BaseModel):
    """Accumulated numeric bounds."""

    model_config = ConfigDict(frozen=True)

    minimum: Optional[float] = None
    maximum: Optional[float] = None
    exclusive_minimum: Optional[float] = None
    exclusive_maximum: Optional[float] = None
    multiple_of: tuple[float, ...] = ()


class StringConstraints(BaseModel):
    """Charset and length bounds for generated string regexes."""

    model_config = ConfigDict(frozen=True)

    charset: Optional[str] = None
    min_length: int = 0
    max_length: Optional[int] = None

    @property
    def regex(self) -> Optional[str]:
        """The anchored regex this descriptor denotes, or None when unconstrained."""
        if self.charset is None:
            return None
        if self.max_length is None:
            quantifier = f"{{{self.min_length},}}"
        elif self.min_length == self.max_length:
            quantifier = f"{{{self.min_length}}}"
        else:
            quantifier = f"{{{self.min_length},{self.max_length}}}"
        return f"^[{self.charset}]{quantifier}$"


class ArrayConstraints(BaseModel):
    """Length bounds plus the element validator."""

    model_config = ConfigDict(frozen=True)

    items: Optional[Any] = None
    min_items: int = 0
    max_items: Optional[int] = None
