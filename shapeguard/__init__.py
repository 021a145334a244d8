"""shapeguard: compile declarative patterns into reusable structural validators.

Usage:
    from shapeguard import compile, number, string, SELF

    user = compile({
        "name": string.of(1, 32, "a-zA-Z "),
        "?age": number.min(0).below(150),
        "+tag-.*": str,
    })
    user({"name": "Ada", "tag-a": "x"})       # True
    user.explain({"name": 5})                 # {"$.name": "...", "$": "..."}

    tree = compile({"left": [number, SELF], "right": [number, SELF]})
    tree.to_descriptor()                      # JSON Schema fragment
"""

from shapeguard.base import BaseValidator
from shapeguard.builders import array, function, number, obj, string
from shapeguard.codec import from_descriptor, to_descriptor
from shapeguard.compiler import classify, compile, compile_fragment
from shapeguard.errors import CompileError, DecodeError, ShapeguardError
from shapeguard.logging_config import configure_logging
from shapeguard.models import ErrorCode, ErrorReport, Mismatch, PatternKind, Quantifier
from shapeguard.session import MISSING, SELF, CompilationSession

__all__ = [
    "compile",
    "compile_fragment",
    "classify",
    "from_descriptor",
    "to_descriptor",
    "configure_logging",
    "SELF",
    "MISSING",
    "number",
    "string",
    "array",
    "obj",
    "function",
    "BaseValidator",
    "CompilationSession",
    "ShapeguardError",
    "CompileError",
    "DecodeError",
    "ErrorCode",
    "ErrorReport",
    "Mismatch",
    "PatternKind",
    "Quantifier",
]
