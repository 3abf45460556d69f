"""Tests for the AST node model: structural dump and shape validation."""

from __future__ import annotations

import dataclasses

import pytest

from cminus.errors import StructuralError
from cminus.nodes import (
    Assignment,
    BinaryOperation,
    Block,
    BlockItem,
    Comparison,
    Declaration,
    DeclarationWithInit,
    Funcall,
    Identifier,
    If,
    Number,
    While,
)


def _block(*nodes) -> Block:
    return Block(items=tuple(BlockItem(n) for n in nodes))


def _increment(name: str) -> Assignment:
    return Assignment(name, BinaryOperation("+", Identifier(name), Number("1")))


class TestRender:
    def test_leaves(self):
        assert Identifier("x").render() == '"x"'
        assert Number("-1").render() == "-1"

    def test_binary_operation(self):
        node = BinaryOperation("*", Identifier("a"), Number("2"))
        assert node.render() == '(* "a" 2)'

    def test_declaration_and_assignment(self):
        assert Declaration("x", "int").render() == '(declare "x" int)'
        assert _increment("x").render() == '(assign "x" (+ "x" 1))'

    def test_declaration_with_init_is_two_lines(self):
        node = DeclarationWithInit(
            Declaration("x", "int"), Assignment("x", Number("2"))
        )
        assert node.render() == '(declare "x" int)\n(assign "x" 2)'

    def test_funcall(self):
        assert Funcall("getint").render() == "(getint)"
        assert Funcall("putint", (Identifier("x"),)).render() == '(putint "x")'

    def test_empty_block(self):
        assert Block().render() == "[\n]"

    def test_block_indents_every_item_line(self):
        program = _block(
            DeclarationWithInit(Declaration("x", "int"), Assignment("x", Number("2"))),
            Funcall("putint", (Identifier("x"),)),
        )
        assert program.render() == (
            "[\n"
            '  (declare "x" int)\n'
            '  (assign "x" 2)\n'
            '  (putint "x")\n'
            "]"
        )

    def test_while(self):
        node = While(
            Comparison("<", Identifier("x"), Number("3")), _block(_increment("x"))
        )
        assert node.render() == (
            '(while (< "x" 3)\n'
            "  [\n"
            '    (assign "x" (+ "x" 1))\n'
            "  ]\n"
            ")"
        )

    def test_if_else(self):
        node = If(
            Comparison("==", Identifier("x"), Number("0")),
            _block(Funcall("putint", (Number("1"),))),
            _block(Funcall("putint", (Number("0"),))),
        )
        assert node.render() == (
            '(if (== "x" 0)\n'
            "  [\n"
            "    (putint 1)\n"
            "  ]\n"
            "  [\n"
            "    (putint 0)\n"
            "  ]\n"
            ")"
        )

    def test_render_is_idempotent(self):
        program = _block(
            While(Comparison(">", Identifier("n"), Number("0")), _block(_increment("n")))
        )
        assert program.render() == program.render()
        assert str(program) == program.render()


class TestImmutability:
    def test_nodes_are_frozen(self):
        node = Identifier("x")
        with pytest.raises(dataclasses.FrozenInstanceError):
            node.name = "y"

    def test_location_does_not_affect_equality(self):
        from cminus.ir import SourceLocation

        loc = SourceLocation(start_line=3, start_col=1, end_line=3, end_col=2)
        assert Identifier("x", location=loc) == Identifier("x")

    def test_default_location_is_shared_unknown_span(self):
        from cminus.ir import NO_SOURCE_LOCATION

        assert Identifier("x").location is NO_SOURCE_LOCATION
        assert Number("1").location.is_unknown()
        assert hash(NO_SOURCE_LOCATION) == hash(Block().location)

    def test_source_location_is_frozen(self):
        from pydantic import ValidationError

        from cminus.ir import NO_SOURCE_LOCATION

        with pytest.raises(ValidationError):
            NO_SOURCE_LOCATION.start_line = 7


class TestValidation:
    def test_condition_must_be_comparison(self):
        with pytest.raises(StructuralError, match="comparison"):
            While(BinaryOperation("+", Identifier("x"), Number("1")), Block())

    def test_if_condition_rejects_identifier(self):
        with pytest.raises(StructuralError):
            If(Identifier("x"), Block())

    def test_comparison_rejects_arithmetic_operator(self):
        with pytest.raises(StructuralError):
            Comparison("+", Identifier("x"), Number("1"))

    def test_arithmetic_rejects_comparison_operator(self):
        with pytest.raises(StructuralError):
            BinaryOperation("<", Identifier("x"), Number("1"))

    def test_comparison_is_not_a_value(self):
        with pytest.raises(StructuralError, match="cannot be used as a value"):
            Assignment("x", Comparison("<", Identifier("a"), Identifier("b")))

    def test_statement_is_not_a_value(self):
        with pytest.raises(StructuralError):
            Funcall("putint", (Declaration("x", "int"),))

    def test_unknown_type_tag(self):
        with pytest.raises(StructuralError, match="unsupported type 'char'"):
            Declaration("c", "char")

    def test_float_type_tag_accepted(self):
        assert Declaration("y", "float").type_tag == "float"

    def test_body_must_be_block(self):
        with pytest.raises(StructuralError, match="loop body"):
            While(Comparison("<", Identifier("x"), Number("3")), _increment("x"))

    def test_mismatched_initializer(self):
        with pytest.raises(StructuralError):
            DeclarationWithInit(Declaration("x", "int"), Assignment("y", Number("1")))


class TestNumber:
    @pytest.mark.parametrize("text, value", [("0", 0), ("5", 5), ("-1", -1), ("+3", 3)])
    def test_integer_values(self, text, value):
        assert Number(text).value == value

    @pytest.mark.parametrize("text", ["2.5", "0x1", "1u", "1_0"])
    def test_non_integer_text_has_no_value(self, text):
        assert Number(text).value is None
        assert not Number(text).in_range

    def test_range(self):
        assert Number("-1").in_range
        assert Number("5").in_range
        assert not Number("6").in_range
        assert not Number("-2").in_range


class TestBlockNormalization:
    def test_block_passes_through(self):
        block = _block(_increment("x"))
        assert Block.of(block) is block

    def test_single_statement_is_wrapped(self):
        stmt = _increment("x")
        block = Block.of(stmt)
        assert block.items == (BlockItem(stmt),)
