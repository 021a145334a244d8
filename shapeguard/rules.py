"""Validators for the leaf and OR pattern forms.

One class per form: delegating schema objects, classes, regexes, wrapped
literals, OR lists, primitives, None and ``...``.
"""

from collections.abc import Mapping
import re
from typing import Any, Optional

from shapeguard.base import BaseValidator, represent
from shapeguard.models import Mismatch
from shapeguard.session import MISSING

# Built-in classes with a direct JSON Schema "type"
BUILTIN_TYPE_NAMES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    dict: "object",
    list: "array",
}


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "str"
    if value is None:
        return "null"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "sequence"
    return "other"


def deep_equal(left: Any, right: Any) -> bool:
    """Structural equality that keeps booleans apart from numbers.

    Lists and tuples compare element-wise; mappings compare key sets and values.
    """
    kind = _kind(left)
    if kind != _kind(right):
        return False
    if kind == "mapping":
        if set(left.keys()) != set(right.keys()):
            return False
        return all(deep_equal(left[key], right[key]) for key in left)
    if kind == "sequence":
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    if kind == "other":
        return left is right or left == right
    return left == right


def jsonable(value: Any) -> Any:
    """Convert tuples (recursively) to lists so literals serialize as JSON arrays."""
    if isinstance(value, Mapping):
        return {key: jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(item) for item in value]
    return value


class DelegatingValidator(BaseValidator):
    """Object exposing a callable ``schema`` attribute; conformance is its verdict."""

    def __init__(self, target: Any, delegate: Optional[BaseValidator] = None):
        self.target = target
        # Rebound copy of a validator-valued ``schema``; None reads the attribute live
        self._delegate = delegate

    @property
    def name(self) -> str:
        return f"schema of {getattr(self.target, '__qualname__', type(self.target).__qualname__)}"

    @property
    def delegate(self) -> Any:
        if self._delegate is not None:
            return self._delegate
        return self.target.schema

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        delegate = self.delegate
        if isinstance(delegate, BaseValidator):
            return delegate._check(value, path, mismatches)
        if value is MISSING:
            # Host schema functions only ever see real values
            return self._fail(mismatches, path, "schema", self.name, value)
        if delegate(value):
            return True
        return self._fail(mismatches, path, "schema", self.name, value)

    def rebind(self, session: Any) -> BaseValidator:
        delegate = self.delegate
        if not isinstance(delegate, BaseValidator):
            return self
        rebound = delegate.rebind(session)
        if rebound is delegate:
            return self
        return DelegatingValidator(self.target, rebound)

    def describe(self) -> dict:
        delegate = self.delegate
        if isinstance(delegate, BaseValidator):
            return delegate.describe()
        return {"x-delegate": getattr(self.target, "__qualname__", type(self.target).__qualname__)}


class InstanceOfValidator(BaseValidator):
    """Class pattern: ``isinstance`` check."""

    def __init__(self, cls: type):
        self.cls = cls

    @property
    def name(self) -> str:
        return f"instance of {self.cls.__qualname__}"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if isinstance(value, self.cls):
            return True
        return self._fail(mismatches, path, "instance_of", self.name, value)

    def describe(self) -> dict:
        type_name = BUILTIN_TYPE_NAMES.get(self.cls)
        if type_name:
            return {"type": type_name}
        return {"type": "object", "x-instanceOf": f"{self.cls.__module__}.{self.cls.__qualname__}"}


class RegexValidator(BaseValidator):
    """Regex pattern: the value must be a string the regex finds a match in."""

    def __init__(self, regex: re.Pattern):
        self.regex = regex

    @property
    def name(self) -> str:
        return f"string matching /{self.regex.pattern}/"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if isinstance(value, str) and self.regex.search(value) is not None:
            return True
        return self._fail(mismatches, path, "regex", self.name, value)

    def describe(self) -> dict:
        return {"type": "string", "pattern": self.regex.pattern}


class LiteralValidator(BaseValidator):
    """Wrapped literal (``[[x]]``): deep structural equality with ``x``."""

    def __init__(self, literal: Any):
        self.literal = literal

    @property
    def name(self) -> str:
        return f"value deep-equal to {represent(self.literal)}"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if deep_equal(value, self.literal):
            return True
        return self._fail(mismatches, path, "literal", self.name, value)

    def describe(self) -> dict:
        return {"enum": [jsonable(self.literal)]}


class EqualsValidator(BaseValidator):
    """Primitive pattern: strict equality with a bool, number or string."""

    def __init__(self, literal: Any):
        self.literal = literal

    @property
    def name(self) -> str:
        return f"value equal to {self.literal!r}"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if _kind(value) == _kind(self.literal) and value == self.literal:
            return True
        return self._fail(mismatches, path, "equals", self.name, value)

    def describe(self) -> dict:
        return {"const": self.literal}


class NullValidator(BaseValidator):
    """None pattern: the value is None or absent."""

    @property
    def name(self) -> str:
        return "None or absent"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if value is None or value is MISSING:
            return True
        return self._fail(mismatches, path, "null", self.name, value)

    def describe(self) -> dict:
        return {"type": "null"}


class AnythingValidator(BaseValidator):
    """``...`` outside an OR list: always conforms."""

    @property
    def name(self) -> str:
        return "anything"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        return True

    def describe(self) -> dict:
        return {}


class AnyOfValidator(BaseValidator):
    """OR list: at least one alternative must accept the value."""

    def __init__(self, alternatives: list[BaseValidator]):
        self.alternatives = tuple(alternatives)

    @property
    def name(self) -> str:
        return "one of [" + ", ".join(alt.name for alt in self.alternatives) + "]"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if mismatches is None:
            return any(alt._check(value, path, None) for alt in self.alternatives)

        branches: list[list[Mismatch]] = []
        for alt in self.alternatives:
            branch: list[Mismatch] = []
            if alt._check(value, path, branch):
                return True
            branches.append(branch or [Mismatch(path=path, rule=alt.name, expected=alt.name, actual=represent(value))])

        mismatches.append(Mismatch(
            path=path,
            rule="any_of",
            expected=self.name,
            actual=represent(value),
            alternatives=branches,
        ))
        return False

    def rebind(self, session: Any) -> BaseValidator:
        rebound = [alt.rebind(session) for alt in self.alternatives]
        if all(new is old for new, old in zip(rebound, self.alternatives)):
            return self
        return AnyOfValidator(rebound)

    def describe(self) -> dict:
        return {"anyOf": [alt.describe() for alt in self.alternatives]}
