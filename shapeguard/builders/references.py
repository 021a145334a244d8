"""Object and function builders: identity and deep-equality checks.

Identity references only make sense inside one process, so their JSON Schema
descriptors are annotations that cannot be decoded back.
"""

from collections.abc import Mapping
from typing import Any, Optional

from shapeguard.base import BaseValidator, represent
from shapeguard.errors import CompileError
from shapeguard.models import ErrorCode, Mismatch
from shapeguard.rules import LiteralValidator, jsonable


class ReferenceValidator(BaseValidator):
    """Identity equality with one specific object."""

    def __init__(self, target: Any):
        self.target = target

    @property
    def name(self) -> str:
        return f"reference to {represent(self.target)}"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if value is self.target:
            return True
        return self._fail(mismatches, path, "reference", self.name, value)

    def describe(self) -> dict:
        label = getattr(self.target, "__qualname__", None) or represent(self.target)
        return {"x-reference": label}


class MappingLiteralValidator(LiteralValidator):
    """``obj.like(x)``: a mapping deep-equal to ``x``."""

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if not isinstance(value, Mapping):
            return self._fail(mismatches, path, "object", "a mapping", value)
        return super()._check(value, path, mismatches)

    def describe(self) -> dict:
        return {"type": "object", "enum": [jsonable(self.literal)]}


class ObjectBuilder(BaseValidator):
    """Bare ``obj`` accepts any mapping."""

    @property
    def name(self) -> str:
        return "object"

    def reference(self, target: Any) -> ReferenceValidator:
        return ReferenceValidator(target)

    def like(self, literal: Any) -> MappingLiteralValidator:
        if not isinstance(literal, Mapping):
            raise CompileError(ErrorCode.BUILDER_INVALID_ARGUMENT, f"obj.like() expects a mapping, got {literal!r}")
        return MappingLiteralValidator(literal)

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if isinstance(value, Mapping):
            return True
        return self._fail(mismatches, path, "object", "a mapping", value)

    def describe(self) -> dict:
        return {"type": "object"}


class FunctionBuilder(BaseValidator):
    """Bare ``function`` accepts any callable."""

    @property
    def name(self) -> str:
        return "callable"

    def reference(self, target: Any) -> ReferenceValidator:
        if not callable(target):
            raise CompileError(ErrorCode.BUILDER_INVALID_ARGUMENT, f"function.reference() expects a callable, got {target!r}")
        return ReferenceValidator(target)

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if callable(value):
            return True
        return self._fail(mismatches, path, "function", "a callable", value)

    def describe(self) -> dict:
        return {"x-instanceOf": "callable"}


# Module-level singletons
obj = ObjectBuilder()
function = FunctionBuilder()
