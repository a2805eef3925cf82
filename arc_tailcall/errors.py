# arc_tailcall/errors.py
"""
Error types for the tail-call eligibility analyzer.

Error Hierarchy:
────────────────
┌─────────────────────────────────────────────────────────────────────┐
│  TailCallError (base)                                               │
│  ├── MalformedControlFlow   - body violates structural invariants   │
│  ├── UnsupportedConstruct   - unmodelled statement/argument/op tag  │
│  └── ParseError             - S-expression front-end failures       │
└─────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error carries a code ``TCO-XXXX``:
  - 1000-1999: malformed control flow
  - 2000-2999: unsupported constructs
  - 3000-3999: front-end (S-expression) errors

The classifier never recovers from any of these internally: a body that
cannot be fully modelled is rejected rather than approximated.
"""

from __future__ import annotations

from enum import Enum, auto, unique
from typing import Any, Optional


@unique
class ErrorCategory(Enum):
    """Coarse error categories, used for filtering and exit codes."""

    UNREACHABLE_STATEMENT = auto()
    MISSING_RETURN = auto()
    EMPTY_BODY = auto()
    BAD_BRANCH = auto()
    BAD_ARGUMENTS = auto()

    UNKNOWN_STATEMENT = auto()
    UNKNOWN_ARGUMENT = auto()
    UNKNOWN_OWNERSHIP_OP = auto()
    PATH_LIMIT = auto()

    SYNTAX = auto()
    UNKNOWN_FORM = auto()
    BAD_VALUE = auto()


class ErrorCode:
    """
    Structured error code of the form ``PREFIX-NNNN``.
    """

    __slots__ = ("prefix", "number", "category")

    def __init__(self, prefix: str, number: int, category: ErrorCategory) -> None:
        self.prefix = prefix
        self.number = number
        self.category = category

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.code == other.code
        if isinstance(other, str):
            return self.code == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.code)


class TailCallErrorCodes:
    """Registry of every code the package raises."""

    UNREACHABLE_AFTER_RETURN = ErrorCode("TCO", 1001, ErrorCategory.UNREACHABLE_STATEMENT)
    UNREACHABLE_AFTER_CONDITIONAL = ErrorCode("TCO", 1002, ErrorCategory.UNREACHABLE_STATEMENT)
    MISSING_RETURN = ErrorCode("TCO", 1003, ErrorCategory.MISSING_RETURN)
    EMPTY_BODY = ErrorCode("TCO", 1004, ErrorCategory.EMPTY_BODY)
    BAD_BRANCH = ErrorCode("TCO", 1005, ErrorCategory.BAD_BRANCH)
    BAD_ARGUMENTS = ErrorCode("TCO", 1006, ErrorCategory.BAD_ARGUMENTS)

    UNKNOWN_STATEMENT = ErrorCode("TCO", 2001, ErrorCategory.UNKNOWN_STATEMENT)
    UNKNOWN_ARGUMENT = ErrorCode("TCO", 2002, ErrorCategory.UNKNOWN_ARGUMENT)
    UNKNOWN_OWNERSHIP_OP = ErrorCode("TCO", 2003, ErrorCategory.UNKNOWN_OWNERSHIP_OP)
    PATH_LIMIT = ErrorCode("TCO", 2004, ErrorCategory.PATH_LIMIT)

    SEXP_SYNTAX = ErrorCode("TCO", 3001, ErrorCategory.SYNTAX)
    UNKNOWN_FORM = ErrorCode("TCO", 3002, ErrorCategory.UNKNOWN_FORM)
    BAD_VALUE = ErrorCode("TCO", 3003, ErrorCategory.BAD_VALUE)


# ═══════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════

class TailCallError(Exception):
    """
    Base exception for every failure raised by ``arc_tailcall``.

    Carries the structured ``code`` and, when known, the name of the
    function being analysed.
    """

    default_code: ErrorCode = TailCallErrorCodes.UNKNOWN_STATEMENT

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        function: Optional[str] = None,
        construct: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.function = function
        self.construct = construct

    def in_function(self, name: str) -> "TailCallError":
        """Attach the enclosing function name if not already set."""
        if self.function is None:
            self.function = name
        return self

    def __str__(self) -> str:
        where = f" in '{self.function}'" if self.function else ""
        return f"[{self.code}]{where}: {self.message}"


class MalformedControlFlow(TailCallError):
    """The body's control flow violates a structural invariant."""

    default_code = TailCallErrorCodes.MISSING_RETURN


class UnsupportedConstruct(TailCallError):
    """A statement, argument or ownership op the model does not cover."""

    default_code = TailCallErrorCodes.UNKNOWN_STATEMENT


class ParseError(TailCallError):
    """Raised when an S-expression cannot be mapped to a function body."""

    default_code = TailCallErrorCodes.UNKNOWN_FORM
