"""
arc_tailcall.classifier
=======================

Predicts whether the recursive call in a function body could be turned
into iteration by an optimizing compiler that also inserts reference-
counting operations.

A recursive call is optimizable only when, on every path that reaches it,
nothing runs between the call and the return that forwards its result.
"Nothing" includes the caller-side ``release`` the compiler adds to
balance a retained accessor result, which is why a call that is
textually last can still be blocked.

Public API
----------
    Classification     - verdict enum
    PathExplanation    - why one path (or call) got its verdict
    TailCallReport     - verdict + override flag + explanations
    ClassifierConfig   - tuning knobs
    TailCallClassifier - the analysis
    classify / analyze - module-level shortcuts using a default classifier
    classify_many      - classify several bodies on a thread pool

Typical usage::

    from arc_tailcall import Argument, Conditional, FunctionBody, RecursiveCall, Return
    from arc_tailcall.classifier import analyze

    body = FunctionBody("length", (
        Conditional("!node", (Return("count"),), (
            RecursiveCall((Argument.accessor("node.next"),
                           Argument.expression("count + 1"))),
            Return(),
        )),
    ))
    report = analyze(body)
    print(report.classification)     # Classification.BLOCKED_BY_CLEANUP
"""

from __future__ import annotations

import enum
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from .errors import TailCallError
from .function_body import (
    ArgumentKind,
    FunctionBody,
    OwnershipOp,
    RecursiveCall,
)
from .ownership import (
    caller_side_ops,
    check_argument,
    check_ownership_op,
    overridable_arguments,
)
from .path_analysis import DEFAULT_MAX_PATHS, ControlPath, enumerate_paths, validate_body

_log = logging.getLogger(__name__)


class Classification(enum.Enum):
    """Verdict for a function body (or, in explanations, for one path)."""

    TAIL_CALL_OPTIMIZABLE = "TailCallOptimizable"
    BLOCKED_BY_CLEANUP = "BlockedByCleanup"
    BLOCKED_BY_NON_TAIL_POSITION = "BlockedByNonTailPosition"
    BLOCKED_BY_POTENTIAL_OVERRIDE = "BlockedByPotentialOverride"

    @property
    def is_blocking(self) -> bool:
        return self in (
            Classification.BLOCKED_BY_CLEANUP,
            Classification.BLOCKED_BY_NON_TAIL_POSITION,
        )

    def __str__(self) -> str:
        return self.value


# Higher wins when paths disagree.  The override flag is informational and
# never competes with the others.
_PRECEDENCE: Dict[Classification, int] = {
    Classification.TAIL_CALL_OPTIMIZABLE: 0,
    Classification.BLOCKED_BY_CLEANUP: 1,
    Classification.BLOCKED_BY_NON_TAIL_POSITION: 2,
}


@dataclass(frozen=True, slots=True)
class PathExplanation:
    """One human-readable finding.

    ``path_index`` is ``None`` for findings that concern a call rather
    than a particular path (the potential-override notes).
    """

    path_index: Optional[int]
    trail: str
    classification: Classification
    statement: Optional[str]
    reason: str

    def __str__(self) -> str:
        where = f"path {self.path_index} [{self.trail}]" if self.path_index is not None else "call"
        at = f" at '{self.statement}'" if self.statement else ""
        return f"{where}: {self.classification}{at}: {self.reason}"


@dataclass(frozen=True)
class TailCallReport:
    """Result of analysing one :class:`FunctionBody`."""

    function: str
    classification: Classification
    potential_override: bool = False
    explanations: Tuple[PathExplanation, ...] = ()
    path_count: int = 0
    recursive_call_count: int = 0

    @property
    def is_optimizable(self) -> bool:
        return self.classification is Classification.TAIL_CALL_OPTIMIZABLE

    @property
    def flags(self) -> FrozenSet[Classification]:
        """The classification plus any informational flag."""
        out = {self.classification}
        if self.potential_override:
            out.add(Classification.BLOCKED_BY_POTENTIAL_OVERRIDE)
        return frozenset(out)

    def blocked_paths(self) -> Tuple[int, ...]:
        seen: List[int] = []
        for exp in self.explanations:
            if exp.classification.is_blocking and exp.path_index not in seen:
                seen.append(exp.path_index)
        return tuple(seen)

    def to_dict(self) -> dict:
        return {
            "function": self.function,
            "classification": self.classification.value,
            "potential_override": self.potential_override,
            "path_count": self.path_count,
            "recursive_call_count": self.recursive_call_count,
            "explanations": [
                {
                    "path": e.path_index,
                    "trail": e.trail,
                    "classification": e.classification.value,
                    "statement": e.statement,
                    "reason": e.reason,
                }
                for e in self.explanations
            ],
        }


@dataclass
class ClassifierConfig:
    """Tuning knobs for :class:`TailCallClassifier`."""

    max_paths: int = DEFAULT_MAX_PATHS
    report_base_cases: bool = False

    def validate(self) -> List[str]:
        """Return a list of validation problems (empty if valid)."""
        problems: List[str] = []
        if self.max_paths <= 0:
            problems.append("max_paths must be positive")
        return problems


# ═══════════════════════════════════════════════════════════════════════
#  Classifier
# ═══════════════════════════════════════════════════════════════════════

class TailCallClassifier:
    """Pure tail-call eligibility analysis.

    Instances hold only their configuration and may be shared between
    threads.
    """

    def __init__(self, config: Optional[ClassifierConfig] = None) -> None:
        self.config = config or ClassifierConfig()
        problems = self.config.validate()
        if problems:
            raise ValueError("invalid ClassifierConfig: " + "; ".join(problems))

    def classify(self, node: FunctionBody) -> Classification:
        return self.analyze(node).classification

    def analyze(self, node: FunctionBody) -> TailCallReport:
        validate_body(node)
        calls = node.recursive_calls()
        self._check_constructs(node, calls)

        verdict = Classification.TAIL_CALL_OPTIMIZABLE
        explanations: List[PathExplanation] = []
        path_count = 0
        for index, path in enumerate(
            enumerate_paths(node, max_paths=self.config.max_paths, validate=False)
        ):
            path_count += 1
            path_verdict, found = self._judge_path(index, path)
            explanations.extend(found)
            if _PRECEDENCE[path_verdict] > _PRECEDENCE[verdict]:
                verdict = path_verdict

        override_notes = self._override_notes(calls)
        explanations.extend(override_notes)

        report = TailCallReport(
            function=node.name,
            classification=verdict,
            potential_override=bool(override_notes),
            explanations=tuple(explanations),
            path_count=path_count,
            recursive_call_count=len(calls),
        )
        _log.debug(
            "%s: %s over %d path(s), %d recursive call(s)%s",
            node.name, verdict, path_count, len(calls),
            " [potential override]" if report.potential_override else "",
        )
        return report

    # ── internals ──────────────────────────────────────────────────────

    @staticmethod
    def _check_constructs(node: FunctionBody, calls: Sequence[RecursiveCall]) -> None:
        try:
            for call in calls:
                for arg in call.arguments:
                    check_argument(arg)
            for stmt in node.iter_statements():
                if isinstance(stmt, OwnershipOp):
                    check_ownership_op(stmt)
        except TailCallError as exc:
            raise exc.in_function(node.name)

    def _judge_path(
        self, index: int, path: ControlPath
    ) -> Tuple[Classification, List[PathExplanation]]:
        trail = path.trail()
        found: List[PathExplanation] = []
        verdict = Classification.TAIL_CALL_OPTIMIZABLE

        def note(cls: Classification, stmt: Optional[object], reason: str) -> None:
            nonlocal verdict
            found.append(PathExplanation(
                index, trail, cls, str(stmt) if stmt is not None else None, reason,
            ))
            if _PRECEDENCE[cls] > _PRECEDENCE[verdict]:
                verdict = cls

        calls = list(path.calls())
        if not calls:
            if self.config.report_base_cases:
                note(Classification.TAIL_CALL_OPTIMIZABLE, path.terminator,
                     "base case, no recursive call on this path")
            return verdict, found

        for pos, call in calls:
            blocked = self._judge_call(path, pos, call, note)
            if not blocked and self.config.report_base_cases:
                note(Classification.TAIL_CALL_OPTIMIZABLE, call,
                     "call result is returned directly")
        return verdict, found

    @staticmethod
    def _judge_call(path: ControlPath, pos: int, call: RecursiveCall, note) -> bool:
        trailing = path.after(pos)
        for stmt in trailing:
            if not isinstance(stmt, OwnershipOp):
                note(Classification.BLOCKED_BY_NON_TAIL_POSITION, stmt,
                     f"'{stmt}' runs after '{call}' before the function returns")
                return True

        ret = path.terminator
        if ret is not None and ret.value is not None and ret.value != call.result:
            note(Classification.BLOCKED_BY_NON_TAIL_POSITION, ret,
                 f"'{ret}' does not return the result of '{call}'")
            return True

        if trailing:
            for op in trailing:
                note(Classification.BLOCKED_BY_CLEANUP, op,
                     f"'{op}' runs after '{call}'"
                     + (f" ({op.reason})" if op.reason else ""))
            return True

        cleanup = caller_side_ops(call).after
        for op in cleanup:
            note(Classification.BLOCKED_BY_CLEANUP, op,
                 f"inserted after '{call}': {op.reason}")
        return bool(cleanup)

    @staticmethod
    def _override_notes(calls: Sequence[RecursiveCall]) -> List[PathExplanation]:
        notes: List[PathExplanation] = []
        for call in calls:
            for arg in overridable_arguments(call):
                if arg.kind is ArgumentKind.DIRECT_FIELD_ACCESS:
                    reason = (f"direct read of '{arg.text}' bypasses an accessor a "
                              f"subtype may override")
                else:
                    reason = (f"accessor '{arg.text}' may be overridden by a subtype; "
                              f"replacing it with a direct read changes behaviour")
                notes.append(PathExplanation(
                    None, "", Classification.BLOCKED_BY_POTENTIAL_OVERRIDE,
                    str(call), reason,
                ))
        return notes


# ═══════════════════════════════════════════════════════════════════════
#  Convenience entry points
# ═══════════════════════════════════════════════════════════════════════

_DEFAULT = TailCallClassifier()


def classify(node: FunctionBody) -> Classification:
    """Classify *node* with the default configuration."""
    return _DEFAULT.classify(node)


def analyze(node: FunctionBody) -> TailCallReport:
    """Full report for *node* with the default configuration."""
    return _DEFAULT.analyze(node)


def classify_many(
    bodies: Sequence[FunctionBody],
    *,
    classifier: Optional[TailCallClassifier] = None,
    max_workers: Optional[int] = None,
) -> List[TailCallReport]:
    """Analyse several bodies concurrently; reports come back in input order.

    A failure is re-raised once the pool has drained.  When several bodies
    fail, the error that surfaces is the first one collected in completion
    order, not necessarily the one with the lowest input index.
    """
    clf = classifier or _DEFAULT
    if max_workers == 1 or len(bodies) <= 1:
        return [clf.analyze(b) for b in bodies]

    completed: List[Tuple[int, TailCallReport]] = []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {pool.submit(clf.analyze, body): idx for idx, body in enumerate(bodies)}
        for future in as_completed(futures):
            completed.append((futures[future], future.result()))

    completed.sort(key=lambda item: item[0])
    return [report for _, report in completed]
