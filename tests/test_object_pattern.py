"""Quantifier-aware object property matching."""

import pytest

from shapeguard import CompileError, ErrorCode, Quantifier, compile, number
from shapeguard.object_pattern import parse_key


# ── Key parsing ──


@pytest.mark.parametrize(
    "key, quantifier, source",
    [
        ("name", Quantifier.EXACT, "name"),
        ("?loc", Quantifier.OPTIONAL, "loc"),
        ("+sn-.*", Quantifier.AT_LEAST_ONE, "sn-.*"),
        ("*x-.*", Quantifier.ANY, "x-.*"),
        ("*", Quantifier.CATCH_ALL, None),
    ],
)
def test_parse_key(key, quantifier, source):
    assert parse_key(key) == (quantifier, source)


@pytest.mark.parametrize("key", ["?", "+", 5])
def test_malformed_keys(key):
    with pytest.raises(CompileError) as exc:
        compile({key: str})
    assert exc.value.code == ErrorCode.KEY_MALFORMED


def test_invalid_key_regex():
    with pytest.raises(CompileError) as exc:
        compile({"+sn-(": str})
    assert exc.value.code == ErrorCode.KEY_INVALID_REGEX


# ── Required keys ──


def test_required_literal_key():
    validator = compile({"name": str})
    assert not validator({})
    assert validator({"name": "x"})
    assert not validator({"name": 5})


def test_required_key_admits_absence_when_sub_pattern_does():
    assert compile({"note": None})({})
    assert compile({"note": ...})({})
    assert compile({"note": [str, None]})({})
    assert not compile({"note": None})({"note": "x"})


def test_plain_regex_key_applies_whenever_present():
    validator = compile({"id-[0-9]+": number})
    assert validator({})
    assert validator({"id-1": 1, "id-2": 2})
    assert not validator({"id-1": "one"})


def test_names_must_match_whole_property_name():
    validator = compile({"id": number})
    assert validator({"id": 1, "xid": "not checked"})


# ── Quantifiers ──


def test_optional_quantifier():
    validator = compile({"?loc": str})
    assert validator({})
    assert validator({"loc": "x"})
    assert not validator({"loc": 5})


def test_optional_regex_allows_at_most_one_match():
    validator = compile({"?alias-.*": str})
    assert validator({"alias-a": "a"})
    assert not validator({"alias-a": "a", "alias-b": "b"})


def test_at_least_one_quantifier():
    validator = compile({"+sn-.*": number})
    assert not validator({})
    assert not validator({"other": 1})
    assert validator({"sn-1": 1})
    assert validator({"sn-1": 1, "sn-2": 2.5})
    assert not validator({"sn-1": "x"})


def test_any_quantifier():
    validator = compile({"*x-.*": str})
    assert validator({})
    assert validator({"x-a": "a", "x-b": "b"})
    assert not validator({"x-a": 1})


# ── Catch-all ──


def test_open_world_without_catch_all():
    assert compile({"a": int})({"a": 1, "b": "anything"})


def test_catch_all_applies_to_unclaimed_properties():
    validator = compile({"id": number, "*": str})
    assert validator({"id": 1, "label": "x"})
    assert not validator({"id": 1, "label": 2})
    # id is claimed by its own key, so the catch-all does not apply to it
    assert validator({"id": 7})


def test_all_matching_keys_must_accept():
    validator = compile({"count": number, "c.*": number.min(10)})
    assert validator({"count": 12})
    assert not validator({"count": 5})


def test_non_string_keys_match_by_str():
    validator = compile({"[0-9]+": str})
    assert validator({1: "one"})
    assert not validator({1: 1})


def test_non_mappings_fail():
    validator = compile({"a": ...})
    for value in [None, [], "a", 1, object()]:
        assert not validator(value)


def test_nested_object_patterns():
    validator = compile({"user": {"name": str, "?email": str}})
    assert validator({"user": {"name": "x"}})
    assert not validator({"user": {"email": "e"}})
    assert not validator({"user": "x"})
