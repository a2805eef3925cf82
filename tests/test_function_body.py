# tests/test_function_body.py
"""
Tests for the immutable function-body model.
"""

import dataclasses

import pytest

from arc_tailcall import (
    Argument,
    ArgumentKind,
    Conditional,
    FunctionBody,
    Other,
    OwnershipOp,
    OwnershipOpKind,
    RecursiveCall,
    Return,
)


class TestArgumentConstructors:

    def test_field_never_needs_stabilising(self):
        arg = Argument.field("node->_next")
        assert arg.kind is ArgumentKind.DIRECT_FIELD_ACCESS
        assert arg.returns_unretained is False
        assert arg.overridable is False

    def test_accessor_defaults_to_unretained(self):
        arg = Argument.accessor("node.next")
        assert arg.kind is ArgumentKind.ACCESSOR_CALL
        assert arg.returns_unretained is True

    def test_accessor_flags(self):
        arg = Argument.accessor("node.next", unretained=False, overridable=True)
        assert arg.returns_unretained is False
        assert arg.overridable is True

    def test_literal_and_expression(self):
        assert Argument.literal("0").kind is ArgumentKind.LITERAL
        assert Argument.expression("count + 1").kind is ArgumentKind.EXPRESSION

    def test_str_is_source_text(self):
        assert str(Argument.expression("count + 1")) == "count + 1"


class TestImmutability:

    def test_body_is_frozen(self):
        body = FunctionBody("f", (Return(),))
        with pytest.raises(dataclasses.FrozenInstanceError):
            body.name = "g"

    def test_lists_become_tuples(self):
        call = RecursiveCall([Argument.literal("1")])
        cond = Conditional("x", [Return("a")], [call, Return()])
        body = FunctionBody("f", [cond])
        assert isinstance(body.statements, tuple)
        assert isinstance(cond.then_branch, tuple)
        assert isinstance(cond.else_branch, tuple)
        assert isinstance(call.arguments, tuple)

    def test_equal_bodies_compare_equal(self):
        a = FunctionBody("f", [Return("x")])
        b = FunctionBody("f", (Return("x"),))
        assert a == b
        assert hash(a) == hash(b)


class TestStatementRendering:

    def test_return(self):
        assert str(Return()) == "return"
        assert str(Return("count")) == "return count"

    def test_call(self):
        call = RecursiveCall((Argument.field("n->_next"), Argument.expression("c + 1")))
        assert str(call) == "recurse(n->_next, c + 1)"
        assert str(RecursiveCall((), result="r")) == "r = recurse()"

    def test_ownership_op(self):
        op = OwnershipOp(OwnershipOpKind.RELEASE, "tmp")
        assert str(op) == "release(tmp)"

    def test_conditional(self):
        assert str(Conditional("!node")) == "if (!node)"


class TestTraversal:

    def test_iter_statements_is_preorder(self):
        inner_call = RecursiveCall(())
        body = FunctionBody("f", (
            Other("a"),
            Conditional("c", (Other("b"),), (inner_call, Return())),
        ))
        texts = [str(s) for s in body.iter_statements()]
        assert texts == ["a", "if (c)", "b", "recurse()", "return"]

    def test_recursive_calls_found_in_branches(self):
        c1 = RecursiveCall((Argument.literal("1"),))
        c2 = RecursiveCall((Argument.literal("2"),))
        body = FunctionBody("f", (
            Conditional("x", (c1, Return()), (c2, Return())),
        ))
        assert body.recursive_calls() == (c1, c2)

    def test_no_recursive_calls(self):
        body = FunctionBody("f", (Other("loop"), Return("n")))
        assert body.recursive_calls() == ()
