"""Pattern Compiler: classifies a raw pattern and builds its validator.

Usage:
    from shapeguard import compile, number, SELF

    tree = compile({"left": [number, SELF], "right": [number, SELF]})
    tree({"left": 3, "right": {"left": 5, "right": 5}})   # True
    tree.explain({"left": 3, "right": "s"})               # {"$.right": "none of ..."}

Dispatch order (first match wins):
    1. schema class   validator, or object with a validator/callable ``schema``
    2. constructor    any class, isinstance check
    3. regex          compiled re.Pattern, search on strings
    4. literal        one-item list inside an OR list, deep equality
    5. or             list/tuple of alternatives (``...`` inside means SELF)
    6. object         Mapping, see object_pattern
    7. primitive      bool/int/float/str, strict equality
    8. null           None, accepts None or absent
    9. anything       ``...`` outside an OR list
    10. self          SELF marker
"""

from collections.abc import Mapping
import inspect
import re
import time
from typing import Any, Optional

import structlog

from shapeguard.base import BaseValidator, represent
from shapeguard.errors import CompileError
from shapeguard.models import ErrorCode, PatternKind
from shapeguard.object_pattern import ObjectPatternValidator
from shapeguard.rules import (
    AnyOfValidator,
    AnythingValidator,
    DelegatingValidator,
    EqualsValidator,
    InstanceOfValidator,
    LiteralValidator,
    NullValidator,
    RegexValidator,
)
from shapeguard.session import SELF, CompilationSession, SelfReferenceValidator

logger = structlog.get_logger()


def _has_schema_delegate(pattern: Any) -> bool:
    try:
        delegate = getattr(pattern, "schema", None)
    except Exception:
        return False
    if isinstance(delegate, BaseValidator):
        return True
    # Classes are constructors unless their schema is a compiled validator
    return not inspect.isclass(pattern) and callable(pattern) and callable(delegate)


def classify(pattern: Any, in_or: bool = False) -> PatternKind:
    """Map a raw pattern to its PatternKind.

    Args:
        pattern: Any caller-supplied pattern
        in_or: True when the pattern is a direct element of an OR list

    Raises:
        CompileError: if the pattern is none of the ten forms
    """
    if isinstance(pattern, BaseValidator) or _has_schema_delegate(pattern):
        return PatternKind.SCHEMA_CLASS
    if inspect.isclass(pattern):
        return PatternKind.CONSTRUCTOR
    if isinstance(pattern, re.Pattern):
        return PatternKind.REGEX
    if isinstance(pattern, (list, tuple)):
        if in_or and len(pattern) == 1:
            return PatternKind.LITERAL
        return PatternKind.OR
    if isinstance(pattern, Mapping):
        return PatternKind.OBJECT
    if isinstance(pattern, (bool, int, float, str)):
        return PatternKind.PRIMITIVE
    if pattern is None:
        return PatternKind.NULL
    if pattern is Ellipsis:
        return PatternKind.SELF if in_or else PatternKind.ANYTHING
    if pattern is SELF:
        return PatternKind.SELF
    raise CompileError(
        ErrorCode.PATTERN_UNRECOGNIZED,
        f"{represent(pattern)} ({type(pattern).__name__}) is not a recognized pattern",
    )


class PatternCompiler:
    """Recursive compiler bound to one session (or none, for builder fragments)."""

    def __init__(self, session: Optional[CompilationSession] = None):
        self.session = session
        self._handlers = {
            PatternKind.SCHEMA_CLASS: self._compile_schema_class,
            PatternKind.CONSTRUCTOR: InstanceOfValidator,
            PatternKind.REGEX: RegexValidator,
            PatternKind.LITERAL: lambda pattern: LiteralValidator(pattern[0]),
            PatternKind.OR: self._compile_or,
            PatternKind.OBJECT: lambda pattern: ObjectPatternValidator.compile(pattern, self.compile),
            PatternKind.PRIMITIVE: EqualsValidator,
            PatternKind.NULL: lambda pattern: NullValidator(),
            PatternKind.ANYTHING: lambda pattern: AnythingValidator(),
            PatternKind.SELF: self._compile_self,
        }

    def compile(self, pattern: Any, in_or: bool = False) -> BaseValidator:
        kind = classify(pattern, in_or)
        return self._handlers[kind](pattern)

    def _compile_schema_class(self, pattern: Any) -> BaseValidator:
        if isinstance(pattern, BaseValidator):
            return pattern
        return DelegatingValidator(pattern)

    def _compile_or(self, pattern: Any) -> BaseValidator:
        return AnyOfValidator([self.compile(element, in_or=True) for element in pattern])

    def _compile_self(self, pattern: Any) -> BaseValidator:
        if self.session is None:
            return SelfReferenceValidator()
        return self.session.self_reference()


def compile(pattern: Any) -> BaseValidator:
    """Compile a pattern into a reusable validator.

    Opens a fresh CompilationSession, so SELF (and ``...`` inside OR lists)
    refers to the validator returned here.

    Args:
        pattern: Any of the ten pattern forms

    Returns:
        The compiled validator

    Raises:
        CompileError: if the pattern or one of its keys is malformed
    """
    start_time = time.perf_counter()

    session = CompilationSession.begin()
    validator = PatternCompiler(session).compile(pattern)
    validator = session.bind(validator)

    logger.debug(
        "pattern_compiled",
        kind=classify(pattern).value,
        validator=type(validator).__name__,
        duration_ms=round((time.perf_counter() - start_time) * 1000, 3),
    )
    return validator


def compile_fragment(pattern: Any) -> BaseValidator:
    """Compile without a session; self-references stay unbound until an enclosing compile binds a copy."""
    return PatternCompiler(None).compile(pattern)
