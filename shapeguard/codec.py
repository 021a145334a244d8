"""JSON Schema codec: validators to JSON Schema fragments and back.

Usage:
    descriptor = compile({"name": string.of(1, 32, "a-z"), "?age": number.min(0)}).to_descriptor()
    same_rules = from_descriptor(descriptor)

Only fragments this module produces are decoded. Host-identity forms (classes
other than the JSON built-ins, ``obj.reference``, ``function``, delegating
schema objects) are emitted as ``x-`` annotations and raise DecodeError when
read back.
"""

import json
import re
import time
from typing import Any, Union

import structlog

from shapeguard.base import BaseValidator
from shapeguard.builders import (
    ArrayValidator,
    MappingLiteralValidator,
    NumberValidator,
    SequenceLiteralValidator,
    StringValidator,
)
from shapeguard.builders.numbers import is_number
from shapeguard.config import get_settings
from shapeguard.errors import CompileError, DecodeError
from shapeguard.models import ArrayConstraints, ErrorCode, NumberConstraints, Quantifier, StringConstraints
from shapeguard.object_pattern import ObjectPatternValidator, PropertyMatcher, parse_key
from shapeguard.rules import (
    AnyOfValidator,
    AnythingValidator,
    EqualsValidator,
    InstanceOfValidator,
    LiteralValidator,
    NullValidator,
    RegexValidator,
)
from shapeguard.session import CompilationSession

logger = structlog.get_logger()

# Keywords ignored on decode
ANNOTATION_KEYWORDS = {"$schema", "$id", "$comment", "title", "description", "default", "examples"}

# Keywords that encode host identity
IDENTITY_KEYWORDS = {"x-instanceOf", "x-reference", "x-delegate"}

NUMBER_KEYWORDS = {"type", "minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum", "multipleOf", "x-multipleOf"}
ARRAY_KEYWORDS = {"type", "items", "minItems", "maxItems"}
OBJECT_KEYWORDS = {"type", "properties", "required", "patternProperties", "additionalProperties", "x-quantifiers"}

# Shape of the regexes produced by string.of()
STRING_BUILDER_PATTERN = re.compile(r"\^\[(?P<charset>.+)\]\{(?P<min>\d+)(?P<comma>,?)(?P<max>\d*)\}\$")

_LITERAL_NAME = re.compile(r"[^.^$*+?{}\[\]\\|()]*")

_QUANTIFIER_PREFIXES = {Quantifier.OPTIONAL.value: "?", Quantifier.AT_LEAST_ONE.value: "+"}


def _unanchor(source: str) -> str:
    """Undo the ``^(?:...)$`` wrapper put around pattern-property names on encode."""
    if source.startswith("^(?:") and source.endswith(")$"):
        inner = source[4:-2]
        try:
            re.compile(inner)
        except re.error:
            return source
        return inner
    return source


def to_descriptor(validator: Any) -> dict:
    """Serialize a validator (or a raw pattern, compiled first) to a JSON Schema fragment."""
    if not isinstance(validator, BaseValidator):
        from shapeguard.compiler import compile
        validator = compile(validator)

    settings = get_settings()
    descriptor = validator.describe()
    if settings.EMIT_SCHEMA_DIALECT:
        descriptor = {"$schema": settings.SCHEMA_DIALECT, **descriptor}
    return descriptor


def from_descriptor(descriptor: Union[dict, str, bytes]) -> BaseValidator:
    """Rebuild a validator from a fragment produced by ``to_descriptor``.

    Args:
        descriptor: JSON Schema fragment, as a dict or a JSON document

    Returns:
        A validator with the same conformance behaviour

    Raises:
        DecodeError: if the fragment has no native pattern representation
    """
    start_time = time.perf_counter()

    if isinstance(descriptor, (str, bytes)):
        try:
            descriptor = json.loads(descriptor)
        except json.JSONDecodeError as e:
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, f"descriptor is not valid JSON: {e}") from e

    session = CompilationSession.begin()
    try:
        validator = DescriptorDecoder(session).decode(descriptor, "#")
    except DecodeError as e:
        logger.info("descriptor_decode_failed", code=e.code.value, error=e.message, pointer=e.path)
        raise
    validator = session.bind(validator)

    logger.debug(
        "descriptor_decoded",
        validator=type(validator).__name__,
        duration_ms=round((time.perf_counter() - start_time) * 1000, 3),
    )
    return validator


class DescriptorDecoder:
    """Recursive decoder bound to one session so ``$ref: "#"`` reaches the decoded root."""

    def __init__(self, session: CompilationSession):
        self.session = session

    def decode(self, node: Any, pointer: str) -> BaseValidator:
        if not isinstance(node, dict):
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, f"expected a JSON object, got {node!r}", pointer)

        keywords = set(node) - ANNOTATION_KEYWORDS
        if not keywords:
            return AnythingValidator()

        identity = keywords & IDENTITY_KEYWORDS
        if identity:
            raise DecodeError(
                ErrorCode.DESCRIPTOR_IDENTITY,
                f"{sorted(identity)[0]} describes a host-identity pattern that cannot be rebuilt",
                pointer,
            )

        if "$ref" in keywords:
            self._only(keywords, {"$ref"}, pointer)
            if node["$ref"] != "#":
                raise DecodeError(ErrorCode.DESCRIPTOR_UNSUPPORTED, f"only self references ('#') are supported, got {node['$ref']!r}", pointer)
            return self.session.self_reference()

        if "anyOf" in keywords:
            self._only(keywords, {"anyOf"}, pointer)
            branches = node["anyOf"]
            if not isinstance(branches, list) or not branches:
                raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, "anyOf must be a non-empty list", pointer)
            return AnyOfValidator([self.decode(branch, f"{pointer}/anyOf/{i}") for i, branch in enumerate(branches)])

        if "const" in keywords:
            self._only(keywords, {"const"}, pointer)
            value = node["const"]
            if isinstance(value, (bool, int, float, str)):
                return EqualsValidator(value)
            return LiteralValidator(value)

        if "enum" in keywords:
            return self._decode_enum(node, keywords, pointer)

        if "type" not in keywords:
            raise DecodeError(ErrorCode.DESCRIPTOR_UNSUPPORTED, f"unsupported keywords {sorted(keywords)}", pointer)

        type_name = node["type"]
        if isinstance(type_name, list):
            self._only(keywords, {"type"}, pointer)
            return AnyOfValidator([self.decode({"type": t}, f"{pointer}/type/{i}") for i, t in enumerate(type_name)])
        if not isinstance(type_name, str):
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, f"type must be a string or a list, got {type_name!r}", pointer)

        handlers = {
            "null": self._decode_simple(NullValidator),
            "boolean": self._decode_simple(lambda: InstanceOfValidator(bool)),
            "integer": self._decode_simple(lambda: InstanceOfValidator(int)),
            "string": self._decode_string,
            "number": self._decode_number,
            "array": self._decode_array,
            "object": self._decode_object,
        }
        handler = handlers.get(type_name)
        if handler is None:
            raise DecodeError(ErrorCode.DESCRIPTOR_UNSUPPORTED, f"unsupported type {type_name!r}", pointer)
        return handler(node, keywords, pointer)

    # ── Helper Methods ──

    def _only(self, keywords: set, allowed: set, pointer: str) -> None:
        extra = keywords - allowed
        if extra:
            raise DecodeError(ErrorCode.DESCRIPTOR_UNSUPPORTED, f"unsupported keywords {sorted(extra)}", pointer)

    def _decode_simple(self, factory):
        def decode(node: dict, keywords: set, pointer: str) -> BaseValidator:
            self._only(keywords, {"type"}, pointer)
            return factory()
        return decode

    def _decode_enum(self, node: dict, keywords: set, pointer: str) -> BaseValidator:
        self._only(keywords, {"enum", "type"}, pointer)
        values = node["enum"]
        if not isinstance(values, list) or not values:
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, "enum must be a non-empty list", pointer)

        type_name = node.get("type")
        if type_name is None:
            if len(values) == 1:
                return LiteralValidator(values[0])
            return AnyOfValidator([LiteralValidator(value) for value in values])

        literal_classes = {"array": SequenceLiteralValidator, "object": MappingLiteralValidator}
        if type_name not in literal_classes or len(values) != 1:
            raise DecodeError(ErrorCode.DESCRIPTOR_UNSUPPORTED, f"enum with type {type_name!r} is not supported", pointer)
        return literal_classes[type_name](values[0])

    def _decode_string(self, node: dict, keywords: set, pointer: str) -> BaseValidator:
        self._only(keywords, {"type", "pattern"}, pointer)
        if "pattern" not in node:
            return StringValidator()

        source = node["pattern"]
        if not isinstance(source, str):
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, "pattern must be a string", pointer)

        built = STRING_BUILDER_PATTERN.fullmatch(source)
        if built:
            min_length = int(built["min"])
            if not built["comma"]:
                max_length = min_length
            else:
                max_length = int(built["max"]) if built["max"] else None
            try:
                return StringValidator(StringConstraints(
                    charset=built["charset"],
                    min_length=min_length,
                    max_length=max_length,
                ))
            except CompileError:
                pass  # charset is not a valid character class; decode as a plain regex

        try:
            return RegexValidator(re.compile(source))
        except re.error as e:
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, f"invalid pattern {source!r}: {e}", pointer) from e

    def _decode_number(self, node: dict, keywords: set, pointer: str) -> BaseValidator:
        self._only(keywords, NUMBER_KEYWORDS, pointer)
        fields = {
            "minimum": "minimum",
            "maximum": "maximum",
            "exclusiveMinimum": "exclusive_minimum",
            "exclusiveMaximum": "exclusive_maximum",
        }
        update: dict = {}
        for keyword, field in fields.items():
            if keyword in node:
                update[field] = self._number(node[keyword], keyword, pointer)

        steps = []
        if "multipleOf" in node:
            steps.append(self._number(node["multipleOf"], "multipleOf", pointer))
        if "x-multipleOf" in node:
            if not isinstance(node["x-multipleOf"], list):
                raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, "x-multipleOf must be a list", pointer)
            steps.extend(self._number(step, "x-multipleOf", pointer) for step in node["x-multipleOf"])
        if any(not step > 0 for step in steps):
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, "multipleOf must be positive", pointer)
        if steps:
            update["multiple_of"] = tuple(steps)

        return NumberValidator(NumberConstraints().model_copy(update=update))

    def _number(self, value: Any, keyword: str, pointer: str) -> float:
        if not is_number(value):
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, f"{keyword} must be a number, got {value!r}", pointer)
        return value

    def _length(self, value: Any, keyword: str, pointer: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, f"{keyword} must be a non-negative integer, got {value!r}", pointer)
        return value

    def _decode_array(self, node: dict, keywords: set, pointer: str) -> BaseValidator:
        self._only(keywords, ARRAY_KEYWORDS, pointer)
        if "items" not in node:
            if "minItems" in node or "maxItems" in node:
                raise DecodeError(ErrorCode.DESCRIPTOR_UNSUPPORTED, "length bounds without items are not supported", pointer)
            return ArrayValidator()

        min_items = self._length(node.get("minItems", 0), "minItems", pointer)
        max_items = node.get("maxItems")
        if max_items is not None:
            max_items = self._length(max_items, "maxItems", pointer)

        return ArrayValidator(ArrayConstraints(
            items=self.decode(node["items"], f"{pointer}/items"),
            min_items=min_items,
            max_items=max_items,
        ))

    def _decode_object(self, node: dict, keywords: set, pointer: str) -> BaseValidator:
        self._only(keywords, OBJECT_KEYWORDS, pointer)
        properties = node.get("properties", {})
        required = node.get("required", [])
        pattern_properties = node.get("patternProperties", {})
        quantifiers = node.get("x-quantifiers", {})
        if not all(isinstance(part, dict) for part in (properties, pattern_properties, quantifiers)):
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, "properties, patternProperties and x-quantifiers must be objects", pointer)
        if not isinstance(required, list):
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, "required must be a list", pointer)

        unknown_required = set(required) - set(properties)
        if unknown_required:
            raise DecodeError(ErrorCode.DESCRIPTOR_UNSUPPORTED, f"required names without properties: {sorted(unknown_required)}", pointer)

        matchers = []
        for name, sub in properties.items():
            sub_validator = self.decode(sub, f"{pointer}/properties/{name}")
            if not _LITERAL_NAME.fullmatch(name):
                if name in required:
                    raise DecodeError(ErrorCode.DESCRIPTOR_UNSUPPORTED, f"required property {name!r} is not a literal name", pointer)
                matchers.append(self._matcher("?" + re.escape(name), sub_validator, pointer))
            elif name in required:
                matchers.append(self._matcher(name, sub_validator, pointer))
            else:
                matchers.append(self._matcher("?" + name, sub_validator, pointer))

        for source, sub in pattern_properties.items():
            sub_validator = self.decode(sub, f"{pointer}/patternProperties/{source}")
            prefix = _QUANTIFIER_PREFIXES.get(quantifiers.get(source), "*")
            matchers.append(self._matcher(prefix + _unanchor(source), sub_validator, pointer))

        additional = node.get("additionalProperties", True)
        if isinstance(additional, dict):
            matchers.append(self._matcher("*", self.decode(additional, f"{pointer}/additionalProperties"), pointer))
        elif additional is not True:
            raise DecodeError(ErrorCode.DESCRIPTOR_UNSUPPORTED, "closed objects (additionalProperties: false) are not supported", pointer)

        return ObjectPatternValidator(matchers)

    def _matcher(self, key: str, validator: BaseValidator, pointer: str) -> PropertyMatcher:
        try:
            quantifier, source = parse_key(key)
            return PropertyMatcher(key, quantifier, source, validator)
        except CompileError as e:
            raise DecodeError(ErrorCode.DESCRIPTOR_MALFORMED, e.message, pointer) from e
