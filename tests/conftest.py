# tests/conftest.py
"""
Shared fixtures for the arc_tailcall test suite.

The ``VARIANTS`` table holds the eight ``length`` implementations of a
singly linked ``ListNode`` list, written in the S-expression surface
syntax, together with the classification each one must receive.
"""

import pytest

from arc_tailcall import (
    Argument,
    Conditional,
    FunctionBody,
    Other,
    RecursiveCall,
    Return,
)


# ── length variants ──────────────────────────────────────────────

V1_INSTANCE_RECURSION = """
(function length_v1 :declared-type ListNode
  (call :result n (accessor self.next :overridable true))
  (stmt "1 + n")
  (return "1 + n"))
"""

V2_CLASS_RECURSION = """
(function lengthOfListWithHead_v2 :declared-type ListNode
  (if "!node"
      ((return 0))
      ((call :result n (accessor node.next :overridable true))
       (stmt "1 + n")
       (return "1 + n"))))
"""

V3_WHILE_LOOP = """
(function lengthOfListWithHead_v3 :declared-type ListNode
  (stmt "count = 0")
  (stmt "while (node) { count += 1; node = node.next; }")
  (return count))
"""

V4_WHILE_LOOP_WITH_COUNT = """
(function lengthOfListWithHead_v4 :declared-type ListNode
  (stmt "while (node) { count += 1; node = node.next; }")
  (return count))
"""

V5_GOTO_LOOP = """
(function lengthOfListWithHead_v5 :declared-type ListNode
  (stmt "top: if (node) { count += 1; node = node.next; goto top; }")
  (return count))
"""

V6_ACCUMULATOR_ACCESSOR = """
(function lengthOfListWithHead_v6 :declared-type ListNode
  (if "!node"
      ((return count))
      ((call (accessor node.next :overridable true) (expr "count + 1"))
       (return))))
"""

V7_ACCUMULATOR_IVAR = """
(function lengthOfListWithHead_v7 :declared-type ListNode
  (if "!node"
      ((return count))
      ((call (field node->_next :overridable true) (expr "count + 1"))
       (return))))
"""

V8_CHECK_THEN_DISPATCH = """
(function lengthOfListWithHead_v8 :declared-type ListNode
  (if "!node"
      ((return count))
      ((if "object_getClass(node) == self"
           ((call (field node->_next) (expr "count + 1"))
            (return))
           ((call (accessor node.next :overridable true) (expr "count + 1"))
            (return))))))
"""

# name -> (source, classification value, potential_override)
VARIANTS = {
    "v1": (V1_INSTANCE_RECURSION, "BlockedByNonTailPosition", True),
    "v2": (V2_CLASS_RECURSION, "BlockedByNonTailPosition", True),
    "v3": (V3_WHILE_LOOP, "TailCallOptimizable", False),
    "v4": (V4_WHILE_LOOP_WITH_COUNT, "TailCallOptimizable", False),
    "v5": (V5_GOTO_LOOP, "TailCallOptimizable", False),
    "v6": (V6_ACCUMULATOR_ACCESSOR, "BlockedByCleanup", True),
    "v7": (V7_ACCUMULATOR_IVAR, "TailCallOptimizable", True),
    "v8": (V8_CHECK_THEN_DISPATCH, "BlockedByCleanup", True),
}


def all_variants_module() -> str:
    """Every variant wrapped in a single ``(module ...)`` form."""
    return "(module length-variants\n" + "\n".join(src for src, _, _ in VARIANTS.values()) + ")"


# ── builders ─────────────────────────────────────────────────────

def accumulator_body(next_arg, name="length"):
    """``if (!node) return count; else return length(<next_arg>, count + 1)``"""
    return FunctionBody(name, (
        Conditional("!node", (Return("count"),), (
            RecursiveCall((next_arg, Argument.expression("count + 1"))),
            Return(),
        )),
    ))


def add_one_body(next_arg, name="length"):
    """``if (!node) return 0; else return 1 + length(<next_arg>)``"""
    return FunctionBody(name, (
        Conditional("!node", (Return("0"),), (
            RecursiveCall((next_arg,), result="n"),
            Other("1 + n"),
            Return("1 + n"),
        )),
    ))


@pytest.fixture
def scenario_a():
    return accumulator_body(Argument.field("node->_next"))


@pytest.fixture
def scenario_b():
    return add_one_body(Argument.accessor("node.next"))


@pytest.fixture
def scenario_c():
    return accumulator_body(Argument.accessor("node.next", unretained=True))


@pytest.fixture
def scenario_d():
    return accumulator_body(Argument.field("node->_next", overridable=True))


@pytest.fixture
def variants_module_source():
    return all_variants_module()
