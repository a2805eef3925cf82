"""
arc_tailcall.ownership
======================

Caller-side ownership-op insertion rules for a recursive call under
automatic reference counting.

A caller passing an argument it does not own must keep the referent alive
until the callee has used it.  When the argument comes from a getter that
may return an unretained (autoreleased, +0) value, the compiler stabilises
it with ``retain-autoreleased`` before the call and balances that with a
``release`` once the call returns.  That trailing release is a statement
*after* the call, so the call is no longer in tail position.

Rules
-----
=====================  ==========================  =====================
Argument kind          before call                 after call
=====================  ==========================  =====================
DirectFieldAccess      -                           -
AccessorCall (+0)      retain-autoreleased(arg)    release(arg)
AccessorCall (+1)      -                           -
Literal                -                           -
Expression             -                           -
=====================  ==========================  =====================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .errors import TailCallErrorCodes, UnsupportedConstruct
from .function_body import (
    Argument,
    ArgumentKind,
    OwnershipOp,
    OwnershipOpKind,
    RecursiveCall,
)


@dataclass(frozen=True, slots=True)
class CallOwnership:
    """Synthetic ops the caller needs around one recursive call."""

    before: Tuple[OwnershipOp, ...] = ()
    after: Tuple[OwnershipOp, ...] = ()

    @property
    def needs_cleanup(self) -> bool:
        return bool(self.after)


def check_argument(arg: object) -> Argument:
    """Reject anything that is not a fully modelled :class:`Argument`."""
    if not isinstance(arg, Argument) or not isinstance(arg.kind, ArgumentKind):
        raise UnsupportedConstruct(
            f"unmodelled call argument: {arg!r}",
            code=TailCallErrorCodes.UNKNOWN_ARGUMENT,
            construct=arg,
        )
    return arg


def check_ownership_op(op: OwnershipOp) -> OwnershipOp:
    if not isinstance(op.kind, OwnershipOpKind):
        raise UnsupportedConstruct(
            f"unmodelled ownership operation: {op!r}",
            code=TailCallErrorCodes.UNKNOWN_OWNERSHIP_OP,
            construct=op,
        )
    return op


def argument_ops(arg: Argument) -> CallOwnership:
    """Ops the caller inserts around a call for a single argument."""
    check_argument(arg)
    if arg.kind is ArgumentKind.ACCESSOR_CALL and arg.returns_unretained:
        stabilise = OwnershipOp(
            OwnershipOpKind.RETAIN_AUTORELEASED_RETURN,
            arg.text,
            f"accessor '{arg.text}' may return an unretained value that must "
            f"stay alive across the call",
        )
        cleanup = OwnershipOp(
            OwnershipOpKind.RELEASE,
            arg.text,
            f"balances the retain of accessor result '{arg.text}' once the call returns",
        )
        return CallOwnership(before=(stabilise,), after=(cleanup,))
    return CallOwnership()


def caller_side_ops(call: RecursiveCall) -> CallOwnership:
    """Combine the per-argument ops of *call*.

    Releases run in reverse argument order, mirroring how the retains
    were pushed.
    """
    before = []
    after = []
    for arg in call.arguments:
        ops = argument_ops(arg)
        before.extend(ops.before)
        after[:0] = ops.after
    return CallOwnership(before=tuple(before), after=tuple(after))


def overridable_arguments(call: RecursiveCall) -> Tuple[Argument, ...]:
    """Arguments whose slot could be served by a subtype's accessor."""
    return tuple(
        a for a in call.arguments
        if check_argument(a).overridable
        and a.kind in (ArgumentKind.DIRECT_FIELD_ACCESS, ArgumentKind.ACCESSOR_CALL)
    )
