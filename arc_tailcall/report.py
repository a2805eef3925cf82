"""
arc_tailcall/report.py
══════════════════════

Plain-text and JSON rendering of :class:`~arc_tailcall.classifier.TailCallReport`.

Text format
───────────
One header line per function, then one indented line per explanation::

    lengthOfListWithHead_v6: BlockedByCleanup (2 paths, 1 recursive call)
      path 1 [!(!node)]: BlockedByCleanup at 'release(node.next)': ...

JSON format
───────────
A list of ``TailCallReport.to_dict()`` objects plus a summary block.
"""

from __future__ import annotations

import json
from collections import Counter
from typing import Dict, Iterable, List, Sequence, TextIO

from .classifier import Classification, TailCallReport


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def render_text(report: TailCallReport, *, indent: str = "  ") -> str:
    """Render one report as human-readable text."""
    header = (
        f"{report.function}: {report.classification} "
        f"({_plural(report.path_count, 'path')}, "
        f"{_plural(report.recursive_call_count, 'recursive call')})"
    )
    if report.potential_override:
        header += f" [{Classification.BLOCKED_BY_POTENTIAL_OVERRIDE}]"
    lines = [header]
    lines.extend(f"{indent}{exp}" for exp in report.explanations)
    return "\n".join(lines)


def summarize(reports: Iterable[TailCallReport]) -> Dict[str, int]:
    """Count reports per classification, plus the override flag."""
    counts: Counter = Counter()
    for rep in reports:
        counts[rep.classification.value] += 1
        if rep.potential_override:
            counts[Classification.BLOCKED_BY_POTENTIAL_OVERRIDE.value] += 1
    return {c.value: counts.get(c.value, 0) for c in Classification}


def render_json(reports: Sequence[TailCallReport], *, indent: int = 2) -> str:
    """Render several reports as one JSON document."""
    doc = {
        "functions": [rep.to_dict() for rep in reports],
        "summary": summarize(reports),
    }
    return json.dumps(doc, indent=indent)


def write_reports(
    reports: Sequence[TailCallReport],
    stream: TextIO,
    *,
    fmt: str = "text",
) -> None:
    """Write *reports* to *stream* as ``"text"`` or ``"json"``."""
    if fmt == "json":
        stream.write(render_json(reports))
        stream.write("\n")
        return
    if fmt != "text":
        raise ValueError(f"unknown report format: {fmt!r}")
    blocks: List[str] = [render_text(rep) for rep in reports]
    stream.write("\n\n".join(blocks))
    if blocks:
        stream.write("\n")
