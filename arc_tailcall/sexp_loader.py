"""arc_tailcall/sexp_loader.py – S-expression → FunctionBody front end.

Converts the output of ``sexpdata.loads`` (nested Python lists,
:class:`sexpdata.Symbol`, strings, ints, floats) into the frozen model in
:mod:`arc_tailcall.function_body`.

Design principles
-----------------
* **Head-symbol dispatch** – every list ``(tag ...)`` is dispatched on
  ``tag`` to a dedicated ``_parse_<tag>`` helper.
* **Fail-fast** – anything unexpected raises :class:`ParseError` with the
  offending form; nothing is silently ignored.
* **No semantics** – the loader only builds values; structural checks are
  left to :func:`arc_tailcall.path_analysis.validate_body`.

Surface syntax
--------------
::

    (module [NAME] FUNCTION...)
    (function NAME [:falls-through BOOL] [:declared-type NAME] STMT...)

    ;; statements
    (return [VALUE])
    (if COND (STMT...) (STMT...))
    (call [:result NAME] ARG...)
    (retain VALUE [REASON])
    (release VALUE [REASON])
    (retain-autoreleased VALUE [REASON])
    (stmt TEXT)

    ;; call arguments
    (field TEXT [:overridable BOOL])
    (accessor TEXT [:unretained BOOL] [:overridable BOOL])
    (literal VALUE)
    (expr TEXT)

BOOL is ``true``/``false`` (``t``/``nil`` also accepted).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import sexpdata
from sexpdata import Symbol

from .errors import ParseError, TailCallErrorCodes
from .function_body import (
    Argument,
    Conditional,
    FunctionBody,
    OwnershipOp,
    OwnershipOpKind,
    RecursiveCall,
    Return,
    Other,
    Statement,
)

_log = logging.getLogger(__name__)

Sexp = Any  # Union[list, Symbol, str, int, float]


# ═══════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════

def _error(message: str, form: Sexp = None, code=TailCallErrorCodes.UNKNOWN_FORM) -> ParseError:
    return ParseError(message, code=code, construct=form)


def _sym_name(s: Sexp) -> str:
    """Extract the string name from a ``sexpdata.Symbol``, or raise."""
    if isinstance(s, Symbol):
        value = getattr(s, "value", None)
        return value() if callable(value) else str(s)
    raise _error(f"Expected symbol, got {type(s).__name__}: {s!r}", s,
                 TailCallErrorCodes.BAD_VALUE)


def _expect_list(s: Sexp, *, min_len: int = 0, tag: Optional[str] = None) -> list:
    """Assert that *s* is a list, optionally with a minimum length."""
    if not isinstance(s, list):
        raise _error(
            f"Expected list{f' ({tag} ...)' if tag else ''}, "
            f"got {type(s).__name__}: {s!r}",
            s, TailCallErrorCodes.BAD_VALUE,
        )
    if len(s) < min_len:
        raise _error(
            f"({tag or '?'} ...) too short: expected at least {min_len} elements, "
            f"got {len(s)}: {s!r}",
            s, TailCallErrorCodes.BAD_VALUE,
        )
    return s


def _head(s: list) -> str:
    """Return the head symbol name of a list form ``(tag ...)``."""
    if not s:
        raise _error("Unexpected empty list", s)
    return _sym_name(s[0])


def _as_text(s: Sexp) -> str:
    """Coerce a symbol, string or number to ``str``."""
    if isinstance(s, Symbol):
        return _sym_name(s)
    if isinstance(s, str):
        return s
    if isinstance(s, (int, float)) and not isinstance(s, bool):
        return str(s)
    raise _error(f"Expected text, got {type(s).__name__}: {s!r}", s,
                 TailCallErrorCodes.BAD_VALUE)


def _as_bool(s: Sexp) -> bool:
    if isinstance(s, bool):
        return s
    if isinstance(s, Symbol):
        v = _sym_name(s).lower()
        if v in ("true", "#t", "t"):
            return True
        if v in ("false", "#f", "nil"):
            return False
    raise _error(f"Expected boolean, got {type(s).__name__}: {s!r}", s,
                 TailCallErrorCodes.BAD_VALUE)


def _is_keyword(s: Sexp) -> bool:
    return isinstance(s, Symbol) and _sym_name(s).startswith(":")


def _split_keywords(
    items: list, allowed: Dict[str, Callable[[Sexp], Any]], tag: str
) -> Tuple[Dict[str, Any], list]:
    """Pull ``:key value`` pairs out of *items*; return (options, rest)."""
    options: Dict[str, Any] = {}
    rest: list = []
    i = 0
    while i < len(items):
        item = items[i]
        if _is_keyword(item):
            key = _sym_name(item)[1:]
            if key not in allowed:
                raise _error(f"Unknown option :{key} in ({tag} ...)", item)
            if i + 1 >= len(items):
                raise _error(f"Option :{key} in ({tag} ...) has no value", item,
                             TailCallErrorCodes.BAD_VALUE)
            options[key.replace("-", "_")] = allowed[key](items[i + 1])
            i += 2
        else:
            rest.append(item)
            i += 1
    return options, rest


# ═══════════════════════════════════════════════════════════════════════
#  Dispatch registry
# ═══════════════════════════════════════════════════════════════════════

_STATEMENT_DISPATCH: Dict[str, Callable[[list], Statement]] = {}
_ARGUMENT_DISPATCH: Dict[str, Callable[[list], Argument]] = {}


def _register(table: dict, tag: str):
    """Decorator: register a parser function under *tag* in *table*."""
    def deco(fn):
        table[tag] = fn
        return fn
    return deco


# ═══════════════════════════════════════════════════════════════════════
#  Statements
# ═══════════════════════════════════════════════════════════════════════

def parse_statement(s: Sexp) -> Statement:
    """Parse one statement form."""
    lst = _expect_list(s, min_len=1)
    tag = _head(lst)
    parser = _STATEMENT_DISPATCH.get(tag)
    if parser is None:
        raise _error(f"Unknown statement form: ({tag} ...)", s)
    return parser(lst)


def _parse_block(s: Sexp, where: str) -> Tuple[Statement, ...]:
    lst = _expect_list(s, tag=where)
    return tuple(parse_statement(item) for item in lst)


@_register(_STATEMENT_DISPATCH, "return")
def _parse_return(s: list) -> Return:
    if len(s) > 2:
        raise _error(f"(return ...) takes at most one value: {s!r}", s,
                     TailCallErrorCodes.BAD_VALUE)
    return Return(_as_text(s[1]) if len(s) == 2 else None)


@_register(_STATEMENT_DISPATCH, "if")
def _parse_if(s: list) -> Conditional:
    _expect_list(s, min_len=3, tag="if")
    if len(s) > 4:
        raise _error(f"(if ...) takes a condition and two branches: {s!r}", s,
                     TailCallErrorCodes.BAD_VALUE)
    then_branch = _parse_block(s[2], "then")
    else_branch = _parse_block(s[3], "else") if len(s) == 4 else ()
    return Conditional(_as_text(s[1]), then_branch, else_branch)


@_register(_STATEMENT_DISPATCH, "call")
def _parse_call(s: list) -> RecursiveCall:
    options, rest = _split_keywords(s[1:], {"result": _as_text}, "call")
    return RecursiveCall(tuple(parse_argument(a) for a in rest), **options)


@_register(_STATEMENT_DISPATCH, "stmt")
def _parse_other(s: list) -> Other:
    _expect_list(s, min_len=2, tag="stmt")
    return Other(" ".join(_as_text(x) for x in s[1:]))


def _ownership_parser(kind: OwnershipOpKind):
    def parse(s: list) -> OwnershipOp:
        _expect_list(s, min_len=2, tag=kind.value)
        if len(s) > 3:
            raise _error(f"({kind.value} ...) takes a value and an optional reason", s,
                         TailCallErrorCodes.BAD_VALUE)
        reason = _as_text(s[2]) if len(s) == 3 else ""
        return OwnershipOp(kind, _as_text(s[1]), reason)
    return parse


for _kind in OwnershipOpKind:
    _register(_STATEMENT_DISPATCH, _kind.value)(_ownership_parser(_kind))
del _kind


# ═══════════════════════════════════════════════════════════════════════
#  Arguments
# ═══════════════════════════════════════════════════════════════════════

def parse_argument(s: Sexp) -> Argument:
    """Parse one call-argument form."""
    lst = _expect_list(s, min_len=2)
    tag = _head(lst)
    parser = _ARGUMENT_DISPATCH.get(tag)
    if parser is None:
        raise _error(f"Unknown argument form: ({tag} ...)", s)
    return parser(lst)


def _single_text(rest: list, tag: str, form: list) -> str:
    if len(rest) != 1:
        raise _error(f"({tag} ...) takes exactly one value: {form!r}", form,
                     TailCallErrorCodes.BAD_VALUE)
    return _as_text(rest[0])


@_register(_ARGUMENT_DISPATCH, "field")
def _parse_field(s: list) -> Argument:
    options, rest = _split_keywords(s[1:], {"overridable": _as_bool}, "field")
    return Argument.field(_single_text(rest, "field", s), **options)


@_register(_ARGUMENT_DISPATCH, "accessor")
def _parse_accessor(s: list) -> Argument:
    options, rest = _split_keywords(
        s[1:], {"unretained": _as_bool, "overridable": _as_bool}, "accessor",
    )
    return Argument.accessor(_single_text(rest, "accessor", s), **options)


@_register(_ARGUMENT_DISPATCH, "literal")
def _parse_literal(s: list) -> Argument:
    return Argument.literal(_single_text(s[1:], "literal", s))


@_register(_ARGUMENT_DISPATCH, "expr")
def _parse_expr(s: list) -> Argument:
    return Argument.expression(_single_text(s[1:], "expr", s))


# ═══════════════════════════════════════════════════════════════════════
#  Functions and modules
# ═══════════════════════════════════════════════════════════════════════

def _parse_function_form(s: Sexp) -> FunctionBody:
    lst = _expect_list(s, min_len=2, tag="function")
    if _head(lst) != "function":
        raise _error(f"Expected (function ...), got ({_head(lst)} ...)", s)
    name = _as_text(lst[1])
    options, rest = _split_keywords(
        lst[2:], {"falls-through": _as_bool, "declared-type": _as_text}, "function",
    )
    statements = tuple(parse_statement(item) for item in rest)
    return FunctionBody(name, statements, **options)


def _loads(text: str) -> Sexp:
    # Keep nil/t as plain symbols so _as_bool can interpret them.
    try:
        return sexpdata.loads(text, nil=None, true=None, false=None)
    except Exception as e:
        raise ParseError(f"S-expression syntax error: {e}",
                         code=TailCallErrorCodes.SEXP_SYNTAX) from e


def parse_function(text: str) -> FunctionBody:
    """Public API: parse a single ``(function ...)`` form.

    >>> body = parse_function('(function f (return))')
    >>> body.name
    'f'
    """
    return _parse_function_form(_loads(text))


def parse_functions(text: str) -> List[FunctionBody]:
    """Parse either one ``(function ...)`` or a ``(module ...)`` of them."""
    raw = _loads(text)
    lst = _expect_list(raw, min_len=1)
    if _head(lst) == "function":
        return [_parse_function_form(lst)]
    if _head(lst) != "module":
        raise _error(f"Expected (module ...) or (function ...), got ({_head(lst)} ...)", raw)
    items = lst[1:]
    if items and isinstance(items[0], Symbol):
        items = items[1:]       # optional module name
    bodies = [_parse_function_form(item) for item in items]
    _log.debug("parsed %d function(s)", len(bodies))
    return bodies


def parse_file(path: Union[str, Path]) -> List[FunctionBody]:
    """Read and parse a ``.sexp`` file into function bodies."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    try:
        return parse_functions(text)
    except ParseError as exc:
        exc.message = f"{p}: {exc.message}"
        raise
