"""
path_analysis.py  –  Structural validation and path enumeration over a
:class:`~arc_tailcall.function_body.FunctionBody`.

Provides two layers:

  Layer 1 – Validation
      ``validate_body`` checks that every statement sequence is well
      formed before any path is walked: no statement follows a Return,
      nothing follows a Conditional whose branches both return, and a
      value-returning body cannot run off its end.

  Layer 2 – Path Enumeration
      ``enumerate_paths`` yields every entry-to-exit path depth first,
      ``then`` before ``else``, so that downstream explanation order is
      deterministic.  A path records the straight-line statements taken,
      the branch choices made, and its terminator.

Conditionals never appear inside a path's ``statements``; they are
represented by the path's ``branches`` trail instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from .errors import MalformedControlFlow, TailCallErrorCodes, UnsupportedConstruct
from .function_body import (
    STATEMENT_TYPES,
    Conditional,
    FunctionBody,
    RecursiveCall,
    Return,
    Statement,
)

_log = logging.getLogger(__name__)

DEFAULT_MAX_PATHS: int = 4096


# ═══════════════════════════════════════════════════════════════════════
#  Path representation
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class BranchChoice:
    """One decision taken at a Conditional along a path."""

    condition: str
    branch: str                 # "then" | "else"

    def __str__(self) -> str:
        prefix = "" if self.branch == "then" else "!"
        return f"{prefix}({self.condition})"


@dataclass(frozen=True)
class ControlPath:
    """
    An immutable entry-to-exit walk through a function body.

    ``terminator`` is the :class:`Return` that ends the path, or ``None``
    when the path falls off the end of a fall-through body.
    """

    statements: Tuple[Statement, ...]
    branches: Tuple[BranchChoice, ...]
    terminator: Optional[Return]

    def calls(self) -> Iterator[Tuple[int, RecursiveCall]]:
        """Yield ``(position, call)`` for each recursive call on the path."""
        for idx, stmt in enumerate(self.statements):
            if isinstance(stmt, RecursiveCall):
                yield idx, stmt

    def after(self, position: int) -> Tuple[Statement, ...]:
        """Statements strictly after *position*, up to the terminator."""
        return self.statements[position + 1:]

    def has_recursion(self) -> bool:
        return any(isinstance(s, RecursiveCall) for s in self.statements)

    def trail(self) -> str:
        if not self.branches:
            return "<straight-line>"
        return " && ".join(str(b) for b in self.branches)

    def __len__(self) -> int:
        return len(self.statements)

    def __repr__(self) -> str:
        end = str(self.terminator) if self.terminator is not None else "<fall-through>"
        body = "; ".join(str(s) for s in self.statements)
        return f"ControlPath[{self.trail()}: {body}{'; ' if body else ''}{end}]"


# ═══════════════════════════════════════════════════════════════════════
#  Layer 1 - Validation
# ═══════════════════════════════════════════════════════════════════════

def _check_sequence(seq: object, where: str) -> Sequence[Statement]:
    if not isinstance(seq, (tuple, list)):
        raise MalformedControlFlow(
            f"{where} is not a statement sequence: {seq!r}",
            code=TailCallErrorCodes.BAD_BRANCH,
            construct=seq,
        )
    for stmt in seq:
        if not isinstance(stmt, STATEMENT_TYPES):
            raise UnsupportedConstruct(
                f"unknown statement in {where}: {stmt!r}",
                code=TailCallErrorCodes.UNKNOWN_STATEMENT,
                construct=stmt,
            )
        if isinstance(stmt, RecursiveCall) and not isinstance(stmt.arguments, (tuple, list)):
            raise MalformedControlFlow(
                f"arguments of a recursive call in {where} are not a sequence: "
                f"{stmt.arguments!r}",
                code=TailCallErrorCodes.BAD_ARGUMENTS,
                construct=stmt,
            )
    return seq


def _always_returns(seq: object, where: str) -> bool:
    """Validate *seq* and report whether every path through it returns."""
    stmts = _check_sequence(seq, where)
    for idx, stmt in enumerate(stmts):
        terminates = False
        if isinstance(stmt, Return):
            terminates = True
        elif isinstance(stmt, Conditional):
            then_returns = _always_returns(stmt.then_branch, f"then-branch of {stmt}")
            else_returns = _always_returns(stmt.else_branch, f"else-branch of {stmt}")
            terminates = then_returns and else_returns
        if terminates:
            if idx + 1 < len(stmts):
                code = (TailCallErrorCodes.UNREACHABLE_AFTER_RETURN
                        if isinstance(stmt, Return)
                        else TailCallErrorCodes.UNREACHABLE_AFTER_CONDITIONAL)
                raise MalformedControlFlow(
                    f"unreachable statement '{stmts[idx + 1]}' after '{stmt}' in {where}",
                    code=code,
                    construct=stmts[idx + 1],
                )
            return True
    return False


def validate_body(body: FunctionBody) -> None:
    """Raise :class:`MalformedControlFlow` if *body* is structurally invalid.

    Unknown statement types raise :class:`UnsupportedConstruct`.
    """
    try:
        if not body.falls_through and not body.statements:
            raise MalformedControlFlow(
                "empty body with no return",
                code=TailCallErrorCodes.EMPTY_BODY,
            )
        returns = _always_returns(body.statements, "function body")
        if not returns and not body.falls_through:
            raise MalformedControlFlow(
                "control can reach the end of a value-returning body without a return",
                code=TailCallErrorCodes.MISSING_RETURN,
            )
    except (MalformedControlFlow, UnsupportedConstruct) as exc:
        raise exc.in_function(body.name)


# ═══════════════════════════════════════════════════════════════════════
#  Layer 2 - Path Enumeration
# ═══════════════════════════════════════════════════════════════════════

_Cursor = Tuple[Tuple[Statement, ...], int]


def _walk(statements: Sequence[Statement]) -> Iterator[ControlPath]:
    """Iterative DFS with explicit stack (no Python recursion per statement)."""
    # Frame: (statements taken, branch trail, continuations innermost-last).
    # Each continuation is a (sequence, next index) cursor.
    FrameT = Tuple[Tuple[Statement, ...], Tuple[BranchChoice, ...], Tuple[_Cursor, ...]]
    stack: List[FrameT] = [((), (), ((tuple(statements), 0),))]

    while stack:
        prefix, branches, pending = stack.pop()
        taken = list(prefix)
        conts = list(pending)
        while True:
            while conts and conts[-1][1] >= len(conts[-1][0]):
                conts.pop()
            if not conts:
                yield ControlPath(tuple(taken), branches, None)
                break
            seq, idx = conts[-1]
            head = seq[idx]
            conts[-1] = (seq, idx + 1)
            if isinstance(head, Return):
                yield ControlPath(tuple(taken), branches, head)
                break
            if isinstance(head, Conditional):
                outer = tuple(conts)
                # Push else before then so that then-paths pop first.
                for label, stmts in reversed(list(head.branches())):
                    choice = BranchChoice(head.condition, label)
                    stack.append((tuple(taken), branches + (choice,),
                                  outer + ((tuple(stmts), 0),)))
                break
            taken.append(head)


def enumerate_paths(
    body: FunctionBody,
    *,
    max_paths: int = DEFAULT_MAX_PATHS,
    validate: bool = True,
) -> Iterator[ControlPath]:
    """Yield every control path of *body*, ``then`` before ``else``.

    Parameters
    ----------
    body:
        The function body to walk.
    max_paths:
        Upper bound on the number of paths; exceeding it raises
        :class:`UnsupportedConstruct`.
    validate:
        Run :func:`validate_body` first.  Callers that have already
        validated may skip it.
    """
    if validate:
        validate_body(body)
    count = 0
    for path in _walk(body.statements):
        count += 1
        if count > max_paths:
            raise UnsupportedConstruct(
                f"more than {max_paths} control paths",
                code=TailCallErrorCodes.PATH_LIMIT,
                function=body.name,
            )
        yield path
    _log.debug("enumerated %d path(s) through %s", count, body.name)


def collect_paths(body: FunctionBody, *, max_paths: int = DEFAULT_MAX_PATHS) -> List[ControlPath]:
    return list(enumerate_paths(body, max_paths=max_paths))
