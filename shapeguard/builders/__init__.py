"""Constraint builders: chainable validators for numbers, strings, arrays, objects and functions."""

from shapeguard.builders.arrays import ArrayValidator, SequenceLiteralValidator, array
from shapeguard.builders.numbers import NumberValidator, number
from shapeguard.builders.references import (
    FunctionBuilder,
    MappingLiteralValidator,
    ObjectBuilder,
    ReferenceValidator,
    function,
    obj,
)
from shapeguard.builders.strings import StringValidator, string

__all__ = [
    "number",
    "string",
    "array",
    "obj",
    "function",
    "NumberValidator",
    "StringValidator",
    "ArrayValidator",
    "SequenceLiteralValidator",
    "MappingLiteralValidator",
    "ObjectBuilder",
    "FunctionBuilder",
    "ReferenceValidator",
]
