#!/usr/bin/env python3
"""arc_tailcall/main.py - command-line driver for the tail-call analyzer.

Usage examples
--------------
    # Classify every function in one or more S-expression files
    python -m arc_tailcall classify bodies.sexp

    # classify is the default command, so this is equivalent
    python -m arc_tailcall bodies.sexp

    # JSON, with a tighter path budget and info logging
    python -m arc_tailcall classify bodies.sexp --format json --max-paths 256 -v

    # List the control paths the classifier would walk (debugging aid)
    python -m arc_tailcall paths bodies.sexp

Exit codes
----------
    0   Every analysed function is TailCallOptimizable.
    1   At least one function is blocked.
    2   Input or infrastructure failure (bad file, malformed body, ...).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from . import __version__
from .classifier import ClassifierConfig, TailCallClassifier, classify_many
from .errors import TailCallError
from .function_body import FunctionBody
from .path_analysis import DEFAULT_MAX_PATHS, enumerate_paths
from .report import write_reports
from .sexp_loader import parse_file

_log = logging.getLogger("arc_tailcall")

EXIT_OK: int = 0
EXIT_BLOCKED: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``arc_tailcall`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("arc_tailcall")
    root.setLevel(level)
    root.handlers[:] = [handler]


def _load_bodies(sources: Sequence[str]) -> List[FunctionBody]:
    bodies: List[FunctionBody] = []
    for raw in sources:
        p = Path(raw).expanduser()
        if not p.exists():
            _log.error("input not found: %s", p)
            raise SystemExit(EXIT_INFRA)
        loaded = parse_file(p)
        _log.info("%s: %d function(s)", p, len(loaded))
        bodies.extend(loaded)
    return bodies


# ===========================================================================
# Subcommands
# ===========================================================================

def cmd_classify(args: argparse.Namespace) -> int:
    bodies = _load_bodies(args.sources)
    config = ClassifierConfig(max_paths=args.max_paths, report_base_cases=args.all_paths)
    reports = classify_many(
        bodies, classifier=TailCallClassifier(config), max_workers=args.jobs,
    )
    write_reports(reports, sys.stdout, fmt=args.format)
    blocked = [r.function for r in reports if not r.is_optimizable]
    if blocked:
        _log.info("blocked: %s", ", ".join(blocked))
        return EXIT_BLOCKED
    return EXIT_OK


def cmd_paths(args: argparse.Namespace) -> int:
    for body in _load_bodies(args.sources):
        sys.stdout.write(f"{body.name}:\n")
        for idx, path in enumerate(enumerate_paths(body, max_paths=args.max_paths)):
            sys.stdout.write(f"  {idx}: {path!r}\n")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arc_tailcall",
        description="Predict tail-call eligibility of recursive functions under ARC.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug).",
    )
    subparsers = parser.add_subparsers(title="commands")

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument("sources", metavar="FILE", nargs="+",
                       help="S-expression file(s) holding (function ...) forms.")
        p.add_argument("--max-paths", type=int, default=DEFAULT_MAX_PATHS,
                       help=f"Path enumeration bound (default: {DEFAULT_MAX_PATHS}).")
        # SUPPRESS keeps the top-level count unless -v is repeated here.
        p.add_argument("-v", "--verbose", action="count", default=argparse.SUPPRESS,
                       help="Increase log verbosity (-v info, -vv debug).")

    # --- classify ----------------------------------------------------------
    p_classify = subparsers.add_parser(
        "classify",
        help="Classify every function in the given files.",
    )
    _common(p_classify)
    p_classify.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Report format (default: text).",
    )
    p_classify.add_argument(
        "--all-paths",
        action="store_true",
        help="Also explain base-case and tail paths, not only blocked ones.",
    )
    p_classify.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Worker threads (default: executor default; 1 disables threading).",
    )
    p_classify.set_defaults(func=cmd_classify)

    # --- paths -------------------------------------------------------------
    p_paths = subparsers.add_parser(
        "paths",
        help="List the control paths of every function.",
    )
    _common(p_paths)
    p_paths.set_defaults(func=cmd_paths)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

_COMMANDS = ("classify", "paths")
_DEFAULT_COMMAND = "classify"


def _with_default_command(argv: Sequence[str]) -> List[str]:
    """Prepend ``classify`` when the first positional is not a command."""
    args = list(argv)
    first = next((a for a in args if not a.startswith("-")), None)
    if first is not None and first not in _COMMANDS:
        args.insert(0, _DEFAULT_COMMAND)
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return its exit code."""
    parser = _build_parser()
    argv = sys.argv[1:] if argv is None else argv
    args = parser.parse_args(_with_default_command(argv))

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except TailCallError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA
    except OSError as exc:
        _log.error("I/O error: %s", exc)
        return EXIT_INFRA
    except ValueError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
