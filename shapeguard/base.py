"""Base validator: abstract class implementing the Strategy Pattern.

Every compiled pattern form is a BaseValidator subclass. Subclasses implement
a single ``_check`` walk that serves both the boolean and the explanation mode,
plus ``describe`` for the JSON Schema codec.
"""

from abc import ABC, abstractmethod
import inspect
from typing import Any, Optional

import structlog

from shapeguard.models import ErrorReport, Mismatch, ROOT_PATH

logger = structlog.get_logger()

_REPR_LIMIT = 80


def represent(value: Any) -> str:
    """Short human-readable representation used in mismatch messages."""
    if inspect.isclass(value):
        return f"<class {value.__qualname__}>"
    text = repr(value)
    if len(text) > _REPR_LIMIT:
        text = text[: _REPR_LIMIT - 3] + "..."
    return text


def child_path(path: str, key: Any) -> str:
    """Extend a JSONPath-like path with a property name or an index."""
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}"


class BaseValidator(ABC):
    """Abstract base for all compiled validators.

    Contract:
        - Immutable after construction; safe to share and call concurrently
        - Calling never raises: any internal failure is non-conformance
        - ``explain`` returns an empty mapping iff the value conforms
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for messages and logging."""
        ...

    @abstractmethod
    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        """Decide conformance of ``value`` found at ``path``.

        Args:
            value: The value under test (may be the MISSING sentinel)
            path: JSONPath-like location of the value
            mismatches: None in boolean mode (short-circuit allowed);
                a list to append Mismatch records to in explanation mode

        Returns:
            True if the value conforms
        """
        ...

    @abstractmethod
    def describe(self) -> dict:
        """Return the JSON Schema fragment retained for this validator."""
        ...

    def rebind(self, session: Any) -> "BaseValidator":
        """Return a validator whose unbound self-references belong to ``session``.

        Never mutates: composite validators return a new instance when any
        child changed, and ``self`` otherwise.
        """
        return self

    # ── Public surface ──

    def __call__(self, value: Any) -> bool:
        return self.validate(value)

    def validate(self, value: Any) -> bool:
        """Boolean conformance check."""
        try:
            return self._check(value, ROOT_PATH, None)
        except Exception as e:
            logger.warning(
                "validation_crashed",
                validator=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    def report(self, value: Any) -> ErrorReport:
        """Run the explanation mode and return the structured report."""
        mismatches: list[Mismatch] = []
        try:
            passed = self._check(value, ROOT_PATH, mismatches)
        except Exception as e:
            logger.warning(
                "validation_crashed",
                validator=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            passed = False
            mismatches.append(Mismatch(
                rule="internal_error",
                expected=self.name,
                actual=f"{type(e).__name__}: {e}",
            ))

        if passed:
            return ErrorReport()
        if not mismatches:
            mismatches.append(Mismatch(rule=self.name, expected=self.name, actual=represent(value)))
        return ErrorReport(mismatches=mismatches)

    def explain(self, value: Any) -> dict[str, str]:
        """Return ``path -> message`` for every failure (empty when the value conforms)."""
        return self.report(value).messages()

    def to_descriptor(self) -> dict:
        """Serialize to a JSON Schema fragment."""
        from shapeguard.codec import to_descriptor
        return to_descriptor(self)

    @property
    def schema(self) -> "BaseValidator":
        return self

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    # ── Helper Methods ──

    def _fail(
        self,
        mismatches: Optional[list[Mismatch]],
        path: str,
        rule: str,
        expected: str,
        value: Any,
    ) -> bool:
        """Record a mismatch when collecting; always returns False."""
        if mismatches is not None:
            mismatches.append(Mismatch(path=path, rule=rule, expected=expected, actual=represent(value)))
        return False
