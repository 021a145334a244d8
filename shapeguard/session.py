"""Self-reference resolution.

A pattern may refer to the schema being defined before that schema exists
(``shapeguard.SELF``, or ``...`` inside an OR list). Each top-level compile
opens a CompilationSession; references created during it forward to the root
validator once the session is bound. References created outside any session
(inside builder fragments) stay unbound; each enclosing compile works on its
own rebuilt copy of such a fragment, so one fragment can serve many schemas.
"""

from typing import Any, Optional

import structlog

from shapeguard.base import BaseValidator
from shapeguard.errors import CompileError
from shapeguard.models import ErrorCode, Mismatch

logger = structlog.get_logger()


class _Missing:
    """Stands in for an absent property when a sub-validator must judge absence."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<missing>"

    def __bool__(self) -> bool:
        return False


class _SelfMarker:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SELF"


MISSING = _Missing()
SELF = _SelfMarker()


class CompilationSession:
    """Deferred-binding cell for one top-level compile call."""

    def __init__(self):
        self._root: Optional[BaseValidator] = None
        self._adopted = 0

    @classmethod
    def begin(cls) -> "CompilationSession":
        return cls()

    @property
    def bound(self) -> bool:
        return self._root is not None

    @property
    def root(self) -> Optional[BaseValidator]:
        return self._root

    def self_reference(self) -> "SelfReferenceValidator":
        """Create a reference that resolves to this session's root."""
        return SelfReferenceValidator(self)

    def adopt_reference(self) -> "SelfReferenceValidator":
        """Fresh reference standing in for an unbound one found in a builder fragment."""
        self._adopted += 1
        return SelfReferenceValidator(self)

    def bind(self, root: BaseValidator) -> BaseValidator:
        """Bind the root exactly once.

        Subtrees holding unbound references (builder fragments such as
        ``array.of(SELF)``) are rebuilt for this session; the fragments the
        caller holds are left untouched.

        Args:
            root: Validator produced by the compile or decode pass

        Returns:
            The bound root: ``root`` itself, or a copy when fragments were rebuilt
        """
        if self._root is not None:
            raise CompileError(ErrorCode.SESSION_ALREADY_BOUND, "compilation session is already bound")
        root = root.rebind(self)
        self._root = root
        if self._adopted:
            logger.debug("self_references_adopted", count=self._adopted, root=root.name)
        return root


class SelfReferenceValidator(BaseValidator):
    """Forwards to the root validator of its session, dereferenced at validation time."""

    def __init__(self, session: Optional[CompilationSession] = None):
        self._session = session

    @property
    def name(self) -> str:
        return "self"

    @property
    def target(self) -> Optional[BaseValidator]:
        if self._session is None:
            return None
        return self._session.root

    def rebind(self, session: CompilationSession) -> BaseValidator:
        if self._session is not None:
            return self
        return session.adopt_reference()

    def _check(self, value: Any, path: str, mismatches: Optional[list[Mismatch]]) -> bool:
        target = self.target
        if target is None:
            logger.debug("self_reference_unbound", path=path)
            return self._fail(mismatches, path, "self_reference", "a bound self-reference", value)
        return target._check(value, path, mismatches)

    def describe(self) -> dict:
        return {"$ref": "#"}
