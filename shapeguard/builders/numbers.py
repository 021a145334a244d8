"""Number builder: range and divisibility constraints.

Usage:
    from shapeguard import number

    percent = number.min(0).max(100)
    odd_step = number.above(0).step(0.5)
"""

import math
from typing import Any, Optional

from shapeguard.base import BaseValidator
from shapeguard.config import get_settings
from shapeguard.errors import CompileError
from shapeguard.models import ErrorCode, Mismatch, NumberConstraints


def is_number(value: Any) -> bool:
    """int or float, never bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_number(value: Any, builder: str) -> None:
    if not is_number(value):
        raise CompileError(
            ErrorCode.BUILDER_INVALID_ARGUMENT,
            f"number.{builder}() expects an int or float, got {value!r}",
        )


class NumberValidator(BaseValidator):
    """Numbers, optionally bounded and stepped. Each builder call returns a new validator."""

    def __init__(self, constraints: Optional[NumberConstraints] = None):
        self.constraints = constraints or NumberConstraints()

    def _with(self, **update) -> "NumberValidator":
        return NumberValidator(self.constraints.model_copy(update=update))

    # ── Builders ──

    def min(self, bound: float) -> "NumberValidator":
        """Inclusive lower bound."""
        _require_number(bound, "min")
        current = self.constraints.minimum
        return self._with(minimum=bound if current is None else max(current, bound))

    def max(self, bound: float) -> "NumberValidator":
        """Inclusive upper bound."""
        _require_number(bound, "max")
        current = self.constraints.maximum
        return self._with(maximum=bound if current is None else min(current, bound))

    def above(self, bound: float) -> "NumberValidator":
        """Exclusive lower bound."""
        _require_number(bound, "above")
        current = self.constraints.exclusive_minimum
        return self._with(exclusive_minimum=bound if current is None else max(current, bound))

    def below(self, bound: float) -> "NumberValidator":
        """Exclusive upper bound."""
        _require_number(bound, "below")
        current = self.constraints.exclusive_maximum
        return self._with(exclusive_maximum=bound if current is None else min(current, bound))

    def step(self, step: float) -> "NumberValidator":
        """Value must be a multiple of ``step``."""
        _require_number(step, "step")
        if not step > 0:
            raise CompileError(ErrorCode.BUILDER_INVALID_ARGUMENT, f"number.step() expects a positive step, got {step!r}")
        return self._with(multiple_of=self.constraints.multiple_of + (step,))

    # ── Validation ──

    @property
    def name(self) -> str:
        c = self.constraints
        parts = []
        if c.minimum is not None:
            parts.append(f">= {c.minimum}")
        if c.exclusive_minimum is not None:
            parts.append(f"> {c.exclusive_minimum}")
        if c.maximum is not None:
            parts.append(f"<= {c.maximum}")
        if c.exclusive_maximum is not None:
            parts.append(f"< {c.exclusive_maximum}")
        for step in c.multiple_of:
            parts.append(f"multiple of {step}")
        return "number" + (f" ({', '.join(parts)})" if parts else "")

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        if not is_number(value):
            return self._fail(mismatches, path, "number", "a number", value)

        c = self.constraints
        passed = True
        checks = [
            (c.minimum, lambda bound: value >= bound, "minimum", ">="),
            (c.maximum, lambda bound: value <= bound, "maximum", "<="),
            (c.exclusive_minimum, lambda bound: value > bound, "exclusive_minimum", ">"),
            (c.exclusive_maximum, lambda bound: value < bound, "exclusive_maximum", "<"),
        ]
        for bound, holds, rule, operator in checks:
            if bound is not None and not holds(bound):
                passed = self._fail(mismatches, path, rule, f"a number {operator} {bound}", value)
                if mismatches is None:
                    return False

        for step in c.multiple_of:
            if not self._divisible(value, step):
                passed = self._fail(mismatches, path, "step", f"a multiple of {step}", value)
                if mismatches is None:
                    return False

        return passed

    @staticmethod
    def _divisible(value: float, step: float) -> bool:
        if isinstance(value, int) and isinstance(step, int):
            return value % step == 0
        if not math.isfinite(value):
            return False
        remainder = math.fmod(value, step)
        tolerance = get_settings().STEP_TOLERANCE
        return math.isclose(remainder, 0, abs_tol=tolerance) or math.isclose(abs(remainder), step, abs_tol=tolerance)

    def describe(self) -> dict:
        c = self.constraints
        descriptor: dict = {"type": "number"}
        if c.minimum is not None:
            descriptor["minimum"] = c.minimum
        if c.maximum is not None:
            descriptor["maximum"] = c.maximum
        if c.exclusive_minimum is not None:
            descriptor["exclusiveMinimum"] = c.exclusive_minimum
        if c.exclusive_maximum is not None:
            descriptor["exclusiveMaximum"] = c.exclusive_maximum
        if len(c.multiple_of) == 1:
            descriptor["multipleOf"] = c.multiple_of[0]
        elif c.multiple_of:
            descriptor["x-multipleOf"] = list(c.multiple_of)
        return descriptor


# Module-level singleton
number = NumberValidator()
