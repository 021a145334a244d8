"""Chainable number/string/array/object/function builders."""

import math
import re

import pytest

from shapeguard import CompileError, ErrorCode, array, compile, function, number, obj, string


# ── Number ──


def test_range_builder():
    validator = number.min(0).max(5)
    assert not validator(-1)
    assert validator(0)
    assert validator(5)
    assert not validator(6)


def test_exclusive_bounds():
    validator = number.above(0).below(1)
    assert not validator(0)
    assert validator(0.5)
    assert not validator(1)


def test_number_rejects_bools_and_non_numbers():
    for value in [True, False, "1", None, [1]]:
        assert not number(value)
    assert number(1)
    assert number(1.5)


def test_nan_fails_any_bound():
    assert number(math.nan)
    assert not number.min(0)(math.nan)


def test_step_divisibility():
    assert number.step(3)(9)
    assert not number.step(3)(10)
    assert number.step(0.1)(0.3)
    assert number.step(0.5)(-1.5)
    assert not number.step(0.5)(0.75)


def test_chaining_is_conjunctive_and_immutable():
    base = number.min(0)
    tighter = base.min(10).step(2)
    assert base(5)
    assert not tighter(5)
    assert not tighter(11)
    assert tighter(12)
    assert not number.max(10).max(20)(15)


@pytest.mark.parametrize(
    "build",
    [
        lambda: number.min("0"),
        lambda: number.max(True),
        lambda: number.step(0),
        lambda: number.step(-2),
    ],
)
def test_invalid_number_arguments(build):
    with pytest.raises(CompileError) as exc:
        build()
    assert exc.value.code == ErrorCode.BUILDER_INVALID_ARGUMENT


# ── String ──


def test_plain_string():
    assert string("")
    assert string("anything at all")
    assert not string(1)


def test_string_of_charset():
    validator = string.of("a-c")
    assert validator("")
    assert validator("abcabc")
    assert not validator("abd")


def test_string_of_length_uses_default_charset():
    validator = string.of(4)
    assert validator("ab12")
    assert not validator("ab1")
    assert not validator("ab-1")


def test_string_of_length_and_charset():
    validator = string.of(3, "0-9")
    assert validator("123")
    assert not validator("12a")
    assert not validator("1234")


def test_string_of_min_max_charset():
    validator = string.of(1, 3, "a-z")
    assert not validator("")
    assert validator("a")
    assert validator("abc")
    assert not validator("abcd")


def test_string_of_unbounded_max():
    validator = string.of(2, None, "x")
    assert not validator("x")
    assert validator("x" * 40)


def test_charset_regex_is_retained():
    assert string.of(1, 3, "a-z").constraints.regex == "^[a-z]{1,3}$"
    assert string.of(8, "0-9a-f").constraints.regex == "^[0-9a-f]{8}$"


@pytest.mark.parametrize(
    "build",
    [
        lambda: string.of(3, 1, "a"),
        lambda: string.of(-1, "a"),
        lambda: string.of(1, 2, 3, "a"),
        lambda: string.of(""),
        lambda: string.of("z-a"),
        lambda: string.of("a").of("b"),
    ],
)
def test_invalid_string_arguments(build):
    with pytest.raises(CompileError) as exc:
        build()
    assert exc.value.code == ErrorCode.BUILDER_INVALID_ARGUMENT


# ── Array ──


def test_array_like():
    validator = array.like([0, 0, 0])
    assert validator([0, 0, 0])
    assert validator((0, 0, 0))
    assert not validator([0, 0])
    assert not validator({"0": 0})


def test_array_of_pattern():
    validator = array.of(str)
    assert validator([])
    assert validator(["a", "b"])
    assert not validator(["a", 1])
    assert not validator("ab")


def test_array_of_exact_length():
    validator = array.of(2, number)
    assert validator([1, 2])
    assert not validator([1])
    assert not validator([1, "2"])


def test_array_of_min_max():
    validator = array.of(1, 2, {"id": number})
    assert not validator([])
    assert validator([{"id": 1}, {"id": 2}])
    assert not validator([{"id": 1}, {"id": 2}, {"id": 3}])
    assert not validator([{"id": "x"}])


def test_array_builder_composes_inside_patterns():
    validator = compile({"points": array.of([[[0, 0]], number])})
    assert validator({"points": [[0, 0], 3]})
    assert not validator({"points": [[0, 1]]})


@pytest.mark.parametrize(
    "build",
    [
        lambda: array.like("abc"),
        lambda: array.of(),
        lambda: array.of(3, 1, str),
        lambda: array.of(-1, str),
        lambda: array.of(str).of(str),
    ],
)
def test_invalid_array_arguments(build):
    with pytest.raises(CompileError) as exc:
        build()
    assert exc.value.code == ErrorCode.BUILDER_INVALID_ARGUMENT


# ── Object / function ──


def test_object_reference_is_identity():
    config = {"debug": True}
    validator = obj.reference(config)
    assert validator(config)
    assert not validator({"debug": True})


def test_object_like_is_deep_equality():
    validator = obj.like({"a": [1, 2], "b": {"c": None}})
    assert validator({"a": (1, 2), "b": {"c": None}})
    assert not validator({"a": [1, 2]})
    assert not validator([("a", [1, 2])])


def test_bare_object_accepts_mappings():
    assert obj({})
    assert not obj([])


def test_function_reference():
    def handler():
        pass

    validator = function.reference(handler)
    assert validator(handler)
    assert not validator(lambda: None)
    assert function(len)
    assert not function("len")
    with pytest.raises(CompileError):
        function.reference("handler")


def test_string_builder_agrees_with_its_regex():
    validator = string.of(1, 3, "a-z")
    regex = re.compile(validator.constraints.regex)
    for value in ["a", "abc", "ab\n", "abcd", "A"]:
        assert validator(value) == (regex.search(value) is not None)
