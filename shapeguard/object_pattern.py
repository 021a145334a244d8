"""Object Pattern Matcher: quantifier-aware matching of mapping properties.

Key grammar:
    "name"      plain key; a literal name is required (its sub-pattern is run
                against MISSING when absent), a regex name applies whenever present
    "?regex"    at most one matching property, each must conform
    "+regex"    at least one matching property, each must conform
    "*regex"    any number of matching properties, each must conform
    "*"         catch-all for properties no other key matched

Names are matched against the whole property name (``re.fullmatch``).
"""

from collections.abc import Mapping
import re
from typing import Any, Callable, Optional

import structlog

from shapeguard.base import BaseValidator, child_path, represent
from shapeguard.errors import CompileError
from shapeguard.models import ErrorCode, Mismatch, Quantifier
from shapeguard.session import MISSING

logger = structlog.get_logger()

_REGEX_METACHARACTERS = frozenset(".^$*+?{}[]\\|()")

_PREFIXES = {
    "?": Quantifier.OPTIONAL,
    "+": Quantifier.AT_LEAST_ONE,
    "*": Quantifier.ANY,
}


class PropertyMatcher:
    """Compiled entry for one object-pattern key."""

    def __init__(
        self,
        key: str,
        quantifier: Quantifier,
        name_source: Optional[str],
        validator: BaseValidator,
    ):
        self.key = key
        self.quantifier = quantifier
        self.name_source = name_source
        self.validator = validator
        self.name_pattern: Optional[re.Pattern] = None
        if name_source is not None:
            try:
                self.name_pattern = re.compile(name_source)
            except re.error as e:
                raise CompileError(
                    ErrorCode.KEY_INVALID_REGEX,
                    f"object-pattern key {key!r} is not a valid regex: {e}",
                ) from e

    @property
    def is_literal(self) -> bool:
        """True when the name contains no regex metacharacters."""
        if self.name_source is None:
            return False
        return not any(ch in _REGEX_METACHARACTERS for ch in self.name_source)

    def matches(self, name: str) -> bool:
        if self.name_pattern is None:
            return True
        return self.name_pattern.fullmatch(name) is not None

    def admits_absence(self) -> bool:
        """True when the sub-validator accepts an absent property (None, ...)."""
        try:
            return self.validator._check(MISSING, "", None)
        except Exception as e:
            logger.warning(
                "absence_check_crashed",
                key=self.key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    def with_validator(self, validator: BaseValidator) -> "PropertyMatcher":
        return PropertyMatcher(self.key, self.quantifier, self.name_source, validator)

    def __repr__(self) -> str:
        return f"<PropertyMatcher {self.key!r} {self.quantifier.name}>"


def parse_key(key: Any) -> tuple[Quantifier, Optional[str]]:
    """Split an object-pattern key into its quantifier and name regex source."""
    if not isinstance(key, str):
        raise CompileError(ErrorCode.KEY_MALFORMED, f"object-pattern keys must be strings, got {represent(key)}")
    if key == "*":
        return Quantifier.CATCH_ALL, None
    if key[:1] in _PREFIXES:
        body = key[1:]
        if not body:
            raise CompileError(ErrorCode.KEY_MALFORMED, f"quantifier {key!r} is missing a property-name regex")
        return _PREFIXES[key[0]], body
    return Quantifier.EXACT, key


class ObjectPatternValidator(BaseValidator):
    """Validates a mapping's properties against an ordered list of PropertyMatchers."""

    def __init__(self, matchers: list[PropertyMatcher]):
        self.matchers = tuple(matchers)
        self._specific = tuple(m for m in self.matchers if m.quantifier != Quantifier.CATCH_ALL)
        self._catch_all = next((m for m in self.matchers if m.quantifier == Quantifier.CATCH_ALL), None)

    @classmethod
    def compile(
        cls,
        mapping: Mapping,
        compile_sub: Callable[[Any], BaseValidator],
    ) -> "ObjectPatternValidator":
        """Compile a key -> pattern mapping.

        Args:
            mapping: Object pattern with quantifier-prefixed regex keys
            compile_sub: Compiler callback for the sub-patterns

        Returns:
            ObjectPatternValidator with one matcher per key, in key order
        """
        matchers = []
        for key, sub_pattern in mapping.items():
            quantifier, name_source = parse_key(key)
            matchers.append(PropertyMatcher(key, quantifier, name_source, compile_sub(sub_pattern)))
        return cls(matchers)

    @property
    def name(self) -> str:
        return "object {" + ", ".join(repr(m.key) for m in self.matchers) + "}"

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if not isinstance(value, Mapping):
            return self._fail(mismatches, path, "object", "a mapping", value)

        passed = True
        counts = {id(m): 0 for m in self.matchers}

        # Every (property, matcher) pair must conform
        for key, item in value.items():
            name = key if isinstance(key, str) else str(key)
            claimed = [m for m in self._specific if m.matches(name)]
            if not claimed and self._catch_all is not None:
                claimed = [self._catch_all]
            for matcher in claimed:
                counts[id(matcher)] += 1
                if not matcher.validator._check(item, child_path(path, name), mismatches):
                    passed = False
                    if mismatches is None:
                        return False

        # Quantifier counts
        for matcher in self._specific:
            if not self._check_count(matcher, counts[id(matcher)], path, mismatches):
                passed = False
                if mismatches is None:
                    return False

        return passed

    def _check_count(
        self,
        matcher: PropertyMatcher,
        count: int,
        path: str,
        mismatches: Optional[list[Mismatch]],
    ) -> bool:
        if matcher.quantifier == Quantifier.OPTIONAL and count > 1:
            return self._count_fail(
                mismatches, path, f"at most one property matching /{matcher.name_source}/", count
            )
        if matcher.quantifier == Quantifier.AT_LEAST_ONE and count == 0:
            return self._count_fail(
                mismatches, path, f"at least one property matching /{matcher.name_source}/", count
            )
        if matcher.quantifier == Quantifier.EXACT and matcher.is_literal and count == 0:
            # Absence is acceptable only when the sub-pattern admits it (None, ...)
            if not matcher.admits_absence():
                if mismatches is not None:
                    mismatches.append(Mismatch(
                        path=child_path(path, matcher.name_source),
                        rule="required",
                        expected=f"property {matcher.name_source!r} ({matcher.validator.name})",
                        actual=represent(MISSING),
                    ))
                return False
        return True

    def _count_fail(self, mismatches: Optional[list[Mismatch]], path: str, expected: str, count: int) -> bool:
        if mismatches is not None:
            mismatches.append(Mismatch(
                path=path,
                rule="quantifier",
                expected=expected,
                actual=f"{count} matching properties",
            ))
        return False

    def rebind(self, session: Any) -> BaseValidator:
        rebound = [m.validator.rebind(session) for m in self.matchers]
        if all(new is m.validator for new, m in zip(rebound, self.matchers)):
            return self
        return ObjectPatternValidator([m.with_validator(v) for m, v in zip(self.matchers, rebound)])

    def describe(self) -> dict:
        descriptor: dict = {"type": "object"}
        properties: dict = {}
        required: list[str] = []
        pattern_properties: dict = {}
        quantifiers: dict = {}

        for matcher in self.matchers:
            sub = matcher.validator.describe()
            if matcher.quantifier == Quantifier.CATCH_ALL:
                descriptor["additionalProperties"] = sub
            elif matcher.is_literal and matcher.quantifier in (Quantifier.EXACT, Quantifier.OPTIONAL):
                properties[matcher.name_source] = sub
                if matcher.quantifier == Quantifier.EXACT and not matcher.admits_absence():
                    required.append(matcher.name_source)
            else:
                anchored = f"^(?:{matcher.name_source})$"
                pattern_properties[anchored] = sub
                if matcher.quantifier in (Quantifier.OPTIONAL, Quantifier.AT_LEAST_ONE):
                    quantifiers[anchored] = matcher.quantifier.value

        if properties:
            descriptor["properties"] = properties
        if required:
            descriptor["required"] = required
        if pattern_properties:
            descriptor["patternProperties"] = pattern_properties
        if quantifiers:
            descriptor["x-quantifiers"] = quantifiers
        return descriptor
