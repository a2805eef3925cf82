"""
arc_tailcall.function_body
==========================

Immutable model of one recursive function body, as handed to the
classifier by a source-language front end.

Public API
----------
    ArgumentKind      - how an argument value is obtained
    Argument          - one argument of a recursive call
    OwnershipOpKind   - retain / release / retain-autoreleased-return
    OwnershipOp       - a (possibly synthetic) ownership operation
    Return            - terminal statement
    Conditional       - two-way branch over statement sequences
    RecursiveCall     - a call to the enclosing function
    Other             - any other computation
    FunctionBody      - the analysed function (one call-graph node)

Design invariants
-----------------
* Every node is a frozen dataclass; child sequences are tuples.
* Lists handed to constructors are converted to tuples; anything that
  is not a list or tuple is kept as-is so that validation can reject it
  with a proper ``MalformedControlFlow``.
* Whether an accessor may be overridden by a subtype is resolved by the
  front end and stored on the argument; the model does no dispatch.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union


class ArgumentKind(enum.Enum):
    """How the caller obtains an argument value."""

    DIRECT_FIELD_ACCESS = "field"      # node->_next
    ACCESSOR_CALL = "accessor"         # node.next / [node next]
    LITERAL = "literal"                # 0, nil, @"x"
    EXPRESSION = "expr"                # count + 1


class OwnershipOpKind(enum.Enum):
    """Reference-counting operations the compiler may synthesise."""

    RETAIN = "retain"
    RELEASE = "release"
    RETAIN_AUTORELEASED_RETURN = "retain-autoreleased"


def _freeze(obj, name: str, value) -> None:
    if isinstance(value, list):
        object.__setattr__(obj, name, tuple(value))


@dataclass(frozen=True, slots=True)
class Argument:
    """One argument expression of a :class:`RecursiveCall`.

    ``returns_unretained`` only matters for accessor calls: the getter may
    hand back a +0 (autoreleased) value the caller has to stabilise.
    ``overridable`` records that the declared type lets a subtype replace
    the accessor for this slot.
    """

    kind: ArgumentKind
    text: str
    returns_unretained: bool = True
    overridable: bool = False

    @classmethod
    def field(cls, text: str, *, overridable: bool = False) -> "Argument":
        return cls(ArgumentKind.DIRECT_FIELD_ACCESS, text,
                   returns_unretained=False, overridable=overridable)

    @classmethod
    def accessor(
        cls,
        text: str,
        *,
        unretained: bool = True,
        overridable: bool = False,
    ) -> "Argument":
        return cls(ArgumentKind.ACCESSOR_CALL, text,
                   returns_unretained=unretained, overridable=overridable)

    @classmethod
    def literal(cls, text: str) -> "Argument":
        return cls(ArgumentKind.LITERAL, text, returns_unretained=False)

    @classmethod
    def expression(cls, text: str) -> "Argument":
        return cls(ArgumentKind.EXPRESSION, text, returns_unretained=False)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class OwnershipOp:
    """A retain/release applied to ``value``, with the reason it exists."""

    kind: OwnershipOpKind
    value: str
    reason: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}({self.value})"


@dataclass(frozen=True, slots=True)
class Return:
    """Terminal statement.

    ``value=None`` returns whatever the immediately preceding call
    produced (or nothing, in a ``void`` function).
    """

    value: Optional[str] = None

    def __str__(self) -> str:
        return "return" if self.value is None else f"return {self.value}"


@dataclass(frozen=True, slots=True)
class RecursiveCall:
    """A call to the enclosing function."""

    arguments: Tuple[Argument, ...] = ()
    result: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, "arguments", self.arguments)

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        call = f"recurse({args})"
        return f"{self.result} = {call}" if self.result else call


@dataclass(frozen=True, slots=True)
class Other:
    """Any statement that is not otherwise modelled (arithmetic, stores...)."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class Conditional:
    """Two-way branch; an empty branch falls through to what follows."""

    condition: str
    then_branch: Tuple["Statement", ...] = ()
    else_branch: Tuple["Statement", ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "then_branch", self.then_branch)
        _freeze(self, "else_branch", self.else_branch)

    def branches(self) -> Iterator[Tuple[str, Tuple["Statement", ...]]]:
        """Yield ``("then", stmts)`` then ``("else", stmts)``."""
        yield "then", self.then_branch
        yield "else", self.else_branch

    def __str__(self) -> str:
        return f"if ({self.condition})"


Statement = Union[Return, Conditional, RecursiveCall, OwnershipOp, Other]

STATEMENT_TYPES: Tuple[type, ...] = (Return, Conditional, RecursiveCall, OwnershipOp, Other)


@dataclass(frozen=True, slots=True)
class FunctionBody:
    """One analysed function: the call-graph node handed to the classifier.

    Attributes
    ----------
    name : str
        Function or method name, used in reports and error messages.
    statements : tuple
        Top-level statement sequence.
    falls_through : bool
        ``True`` when the function may end without an explicit
        :class:`Return` (a ``void`` function).
    declared_type : str or None
        Static type of the receiver/list node, informational only.
    """

    name: str
    statements: Tuple[Statement, ...] = ()
    falls_through: bool = False
    declared_type: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, "statements", self.statements)

    def iter_statements(self) -> Iterator[Statement]:
        """Pre-order walk over every statement, including nested branches."""
        stack = list(reversed(self.statements))
        while stack:
            stmt = stack.pop()
            yield stmt
            if isinstance(stmt, Conditional):
                nested = list(stmt.then_branch) + list(stmt.else_branch)
                stack.extend(reversed(nested))

    def recursive_calls(self) -> Tuple[RecursiveCall, ...]:
        return tuple(s for s in self.iter_statements() if isinstance(s, RecursiveCall))
