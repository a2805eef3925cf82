"""
arc_tailcall - Tail-Call Eligibility Analysis under Reference Counting
======================================================================

Predicts whether a recursive function could have its recursive call
turned into iteration once a compiler has inserted the retain/release
operations automatic reference counting requires.

Core modules
------------
function_body
    Immutable model of an analysed function: statements, call arguments,
    ownership operations.
path_analysis
    Structural validation and entry-to-exit path enumeration.
ownership
    Caller-side ownership ops synthesised around a recursive call.
classifier
    ``TailCallClassifier`` and its ``Classification`` / ``TailCallReport``.
errors
    ``MalformedControlFlow``, ``UnsupportedConstruct``, ``ParseError``.

Front end / output
------------------
sexp_loader
    S-expression surface syntax for function bodies (``sexpdata``).
report
    Text and JSON rendering of reports.

Quick start
-----------
>>> from arc_tailcall import parse_function, classify
>>> body = parse_function('''
... (function length :declared-type ListNode
...   (if "!node"
...       ((return count))
...       ((call (field node->_next) (expr "count + 1"))
...        (return))))''')
>>> print(classify(body))
TailCallOptimizable
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

__version__ = "0.1.0"
__license__ = "MIT"
__all__: List[str] = []          # populated incrementally below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_import)
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "TailCallError",
        "MalformedControlFlow",
        "UnsupportedConstruct",
        "ParseError",
    ],
    "function_body": [
        "ArgumentKind",
        "Argument",
        "OwnershipOpKind",
        "OwnershipOp",
        "Return",
        "Conditional",
        "RecursiveCall",
        "Other",
        "FunctionBody",
    ],
    "path_analysis": [
        "ControlPath",
        "BranchChoice",
        "validate_body",
        "enumerate_paths",
    ],
    "ownership": [
        "CallOwnership",
        "caller_side_ops",
    ],
    "classifier": [
        "Classification",
        "PathExplanation",
        "TailCallReport",
        "ClassifierConfig",
        "TailCallClassifier",
        "classify",
        "analyze",
        "classify_many",
    ],
    "sexp_loader": [
        "parse_function",
        "parse_functions",
        "parse_file",
    ],
    "report": [
        "render_text",
        "render_json",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"arc_tailcall: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        obj = getattr(mod, name, None)
        if obj is None:
            raise AttributeError(f"arc_tailcall.{module_rel_name} does not export '{name}'")
        setattr(current_module, name, obj)
        __all__.append(name)

    setattr(current_module, module_rel_name, mod)
    if module_rel_name not in __all__:
        __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names


__all__ += ["__version__"]

# ---------------------------------------------------------------------------
# TYPE_CHECKING block: static re-exports for IDEs and type checkers
# ---------------------------------------------------------------------------

if TYPE_CHECKING:
    from .errors import (
        TailCallError as TailCallError,
        MalformedControlFlow as MalformedControlFlow,
        UnsupportedConstruct as UnsupportedConstruct,
        ParseError as ParseError,
    )
    from .function_body import (
        ArgumentKind as ArgumentKind,
        Argument as Argument,
        OwnershipOpKind as OwnershipOpKind,
        OwnershipOp as OwnershipOp,
        Return as Return,
        Conditional as Conditional,
        RecursiveCall as RecursiveCall,
        Other as Other,
        FunctionBody as FunctionBody,
    )
    from .path_analysis import (
        ControlPath as ControlPath,
        BranchChoice as BranchChoice,
        validate_body as validate_body,
        enumerate_paths as enumerate_paths,
    )
    from .ownership import (
        CallOwnership as CallOwnership,
        caller_side_ops as caller_side_ops,
    )
    from .classifier import (
        Classification as Classification,
        PathExplanation as PathExplanation,
        TailCallReport as TailCallReport,
        ClassifierConfig as ClassifierConfig,
        TailCallClassifier as TailCallClassifier,
        classify as classify,
        analyze as analyze,
        classify_many as classify_many,
    )
    from .sexp_loader import (
        parse_function as parse_function,
        parse_functions as parse_functions,
        parse_file as parse_file,
    )
    from .report import (
        render_text as render_text,
        render_json as render_json,
    )
