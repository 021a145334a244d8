"""Array builder: literal equality, element patterns and length bounds.

    array.like([0, 0, 0])        deep-equal to [0, 0, 0]
    array.of(str)                any number of strings
    array.of(3, number)          exactly three numbers
    array.of(1, None, SELF)      one or more nodes of the enclosing schema
"""

from typing import Any, Optional

from shapeguard.base import BaseValidator, child_path
from shapeguard.compiler import compile_fragment
from shapeguard.errors import CompileError
from shapeguard.models import ArrayConstraints, ErrorCode, Mismatch
from shapeguard.rules import LiteralValidator, jsonable


def _require_length(value: Any, allow_none: bool = False) -> None:
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise CompileError(
            ErrorCode.BUILDER_INVALID_ARGUMENT,
            f"array.of() lengths must be non-negative integers, got {value!r}",
        )


class SequenceLiteralValidator(LiteralValidator):
    """``array.like(x)``: a list or tuple deep-equal to ``x``."""

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if not isinstance(value, (list, tuple)):
            return self._fail(mismatches, path, "array", "a list or tuple", value)
        return super()._check(value, path, mismatches)

    def describe(self) -> dict:
        return {"type": "array", "enum": [jsonable(self.literal)]}


class ArrayValidator(BaseValidator):
    """Lists and tuples, optionally with an element validator and length bounds."""

    def __init__(self, constraints: Optional[ArrayConstraints] = None):
        self.constraints = constraints or ArrayConstraints()

    @property
    def items(self) -> Optional[BaseValidator]:
        return self.constraints.items

    def like(self, literal: Any) -> SequenceLiteralValidator:
        """Deep equality with a list/tuple literal."""
        if not isinstance(literal, (list, tuple)):
            raise CompileError(ErrorCode.BUILDER_INVALID_ARGUMENT, f"array.like() expects a list or tuple, got {literal!r}")
        return SequenceLiteralValidator(literal)

    def of(self, *args: Any) -> "ArrayValidator":
        """Element pattern plus optional lengths: ``of(p)``, ``of(length, p)``, ``of(min, max, p)``."""
        if self.items is not None:
            raise CompileError(ErrorCode.BUILDER_INVALID_ARGUMENT, "array.of() was already applied")
        if not 1 <= len(args) <= 3:
            raise CompileError(ErrorCode.BUILDER_INVALID_ARGUMENT, f"array.of() takes 1 to 3 arguments, got {len(args)}")

        *lengths, pattern = args
        if not lengths:
            min_items, max_items = 0, None
        elif len(lengths) == 1:
            _require_length(lengths[0])
            min_items = max_items = lengths[0]
        else:
            _require_length(lengths[0])
            _require_length(lengths[1], allow_none=True)
            min_items, max_items = lengths
            if max_items is not None and min_items > max_items:
                raise CompileError(
                    ErrorCode.BUILDER_INVALID_ARGUMENT,
                    f"array.of() min length {min_items} exceeds max length {max_items}",
                )

        return ArrayValidator(self.constraints.model_copy(update={
            "items": compile_fragment(pattern),
            "min_items": min_items,
            "max_items": max_items,
        }))

    @property
    def name(self) -> str:
        c = self.constraints
        if c.items is None:
            return "array"
        if c.max_items is None:
            length = f"{c.min_items}+" if c.min_items else ""
        elif c.min_items == c.max_items:
            length = str(c.min_items)
        else:
            length = f"{c.min_items}..{c.max_items}"
        return f"array of {length + ' ' if length else ''}{c.items.name}"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if not isinstance(value, (list, tuple)):
            return self._fail(mismatches, path, "array", "a list or tuple", value)

        c = self.constraints
        passed = True
        if len(value) < c.min_items or (c.max_items is not None and len(value) > c.max_items):
            if mismatches is None:
                return False
            upper = "" if c.max_items is None else str(c.max_items)
            mismatches.append(Mismatch(
                path=path,
                rule="length",
                expected=f"length {c.min_items}..{upper}",
                actual=f"length {len(value)}",
            ))
            passed = False

        if c.items is not None:
            for index, item in enumerate(value):
                if not c.items._check(item, child_path(path, index), mismatches):
                    passed = False
                    if mismatches is None:
                        return False

        return passed

    def rebind(self, session: Any) -> BaseValidator:
        if self.items is None:
            return self
        rebound = self.items.rebind(session)
        if rebound is self.items:
            return self
        return ArrayValidator(self.constraints.model_copy(update={"items": rebound}))

    def describe(self) -> dict:
        c = self.constraints
        descriptor: dict = {"type": "array"}
        if c.items is not None:
            descriptor["items"] = c.items.describe()
        if c.min_items:
            descriptor["minItems"] = c.min_items
        if c.max_items is not None:
            descriptor["maxItems"] = c.max_items
        return descriptor


# Module-level singleton
array = ArrayValidator()
