"""Explanation mode and the structured error report."""

import pytest
from structlog.testing import capture_logs

from shapeguard import MISSING, SELF, BaseValidator, ErrorReport, Mismatch, array, compile, number, string


def _broken_delegate():
    def broken():
        pass

    def explode(value):
        raise RuntimeError("boom")

    broken.schema = explode
    return broken


@pytest.mark.parametrize(
    "pattern, good, bad",
    [
        ({"name": str}, {"name": "x"}, {}),
        ({"?loc": str}, {}, {"loc": 5}),
        ({"+sn-.*": number}, {"sn-1": 1}, {"sn-1": "x"}),
        ([str, number.min(0)], 3, -3),
        (number.min(0).max(5), 5, 6),
        (array.of(2, str), ["a", "b"], ["a"]),
        ([[[1, 2]]], [1, 2], [2, 1]),
        ({"left": [number, SELF], "right": [number, SELF]}, {"left": 1, "right": 2}, {"left": 1, "right": {"left": "x"}}),
    ],
)
def test_explain_is_empty_iff_value_conforms(pattern, good, bad):
    validator = compile(pattern)
    assert validator.explain(good) == {}
    messages = validator.explain(bad)
    assert messages
    assert all(isinstance(path, str) and isinstance(text, str) for path, text in messages.items())


def test_missing_required_property_is_reported_at_its_path():
    messages = compile({"name": str}).explain({})
    assert list(messages) == ["$.name"]
    assert "required" in messages["$.name"]
    assert "<missing>" in messages["$.name"]


def test_messages_include_expected_and_actual():
    messages = compile({"age": number.min(18)}).explain({"age": 12})
    assert messages == {"$.age": "minimum: expected a number >= 18, got 12"}


def test_all_failing_properties_are_collected():
    validator = compile({"a": number, "b": string, "c": [[True]]})
    messages = validator.explain({"a": "1", "b": 2, "c": False})
    assert set(messages) == {"$.a", "$.b", "$.c"}


def test_or_failures_are_joined_with_and():
    messages = compile([str, number.min(0)]).explain(-3)
    text = messages["$"]
    assert text.startswith("none of the alternatives matched:")
    assert " AND " in text
    assert "instance of str" in text
    assert "a number >= 0" in text


def test_nested_or_branch_reports_inner_paths():
    messages = compile({"pet": [{"kind": "cat"}, {"kind": "dog", "bark": True}]}).explain(
        {"pet": {"kind": "dog", "bark": False}}
    )
    text = messages["$.pet"]
    assert "$.pet.kind" in text
    assert "$.pet.bark" in text


def test_quantifier_failures_are_reported_on_the_object():
    messages = compile({"+sn-.*": number}).explain({})
    assert messages["$"] == "quantifier: expected at least one property matching /sn-.*/, got 0 matching properties"


def test_array_item_paths():
    messages = array.of(number).explain([1, "2", 3, None])
    assert set(messages) == {"$[1]", "$[3]"}


def test_report_is_structured():
    report = compile({"a": number}).report({"a": "x"})
    assert isinstance(report, ErrorReport)
    assert not report.passed
    assert report.mismatches[0] == Mismatch(path="$.a", rule="number", expected="a number", actual="'x'")


def test_repeated_paths_are_joined():
    report = ErrorReport(mismatches=[
        Mismatch(path="$", rule="a", expected="x", actual="y"),
        Mismatch(path="$", rule="b", expected="x", actual="y"),
    ])
    assert report.messages() == {"$": "a: expected x, got y; b: expected x, got y"}


def test_validation_never_raises():
    validator = compile({"value": _broken_delegate()})
    with capture_logs() as logs:
        assert validator({"value": 1}) is False
        messages = validator.explain({"value": 1})
    assert "internal_error" in messages["$"]
    assert any(log["event"] == "validation_crashed" for log in logs)


def test_non_dict_values_never_crash_object_patterns():
    validator = compile({"a": {"b": number}})
    for value in [None, 1, "s", [1], {"a": None}, {"a": [1]}]:
        assert validator(value) is False
        assert validator.explain(value)


def _positive():
    def positive():
        pass

    positive.schema = lambda value: value > 0
    return positive


def test_missing_delegated_property_is_required_not_a_crash():
    validator = compile({"n": _positive()})
    with capture_logs() as logs:
        messages = validator.explain({})
    assert list(messages) == ["$.n"]
    assert messages["$.n"].startswith("required:")
    assert not any(log["event"] == "validation_crashed" for log in logs)
    assert validator({"n": 3})
    assert not validator({"n": -3})


def test_absence_check_that_raises_means_required():
    class Touchy(BaseValidator):
        name = "touchy"

        def _check(self, value, path, mismatches):
            if value is MISSING:
                raise RuntimeError("no sentinel please")
            return True

        def describe(self):
            return {}

    validator = compile({"t": Touchy()})
    with capture_logs() as logs:
        messages = validator.explain({})
    assert messages["$.t"].startswith("required:")
    assert any(log["event"] == "absence_check_crashed" for log in logs)
