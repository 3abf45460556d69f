"""Tests for ASTBuilder — tree-sitter C parse tree -> C-minus AST."""

from __future__ import annotations

import logging

import pytest

from cminus.builder import ASTBuilder
from cminus.config import CompilerConfig
from cminus.errors import (
    BuiltinCallError,
    LiteralRangeError,
    ParseError,
    StructuralError,
)
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
from cminus.parser import Parser, TreeSitterParserFactory


def _build(source: str, config: CompilerConfig = CompilerConfig()) -> Block:
    parsed = Parser(TreeSitterParserFactory()).parse(source)
    return ASTBuilder(config).build(parsed)


def _items(source: str, config: CompilerConfig = CompilerConfig()) -> list:
    return [item.content for item in _build(source, config).items]


class TestDeclarations:
    def test_plain_declaration(self):
        assert _items("int x;") == [Declaration("x", "int")]

    def test_float_declaration(self):
        assert _items("float y;") == [Declaration("y", "float")]

    def test_declaration_with_initializer(self):
        assert _items("int x = 2;") == [
            DeclarationWithInit(Declaration("x", "int"), Assignment("x", Number("2")))
        ]

    def test_getint_initializer(self):
        (decl,) = _items("int x = getint();")
        assert decl.assignment.expression == Funcall("getint")

    def test_unsupported_type(self):
        with pytest.raises(StructuralError, match="char"):
            _build("char c;")

    @pytest.mark.parametrize(
        "source, specifier",
        [
            ("const int x = 1;", "type_qualifier"),
            ("volatile int x;", "type_qualifier"),
            ("static int x;", "storage_class_specifier"),
        ],
    )
    def test_qualifiers_and_storage_classes_rejected(self, source, specifier):
        with pytest.raises(StructuralError, match=specifier):
            _build(source)

    def test_multiple_declarators_rejected(self):
        with pytest.raises(StructuralError, match="exactly one"):
            _build("int a, b;")


class TestStatements:
    def test_assignment(self):
        assert _items("x = 3;") == [Assignment("x", Number("3"))]

    def test_compound_assignment_rejected(self):
        with pytest.raises(StructuralError, match=r"\+="):
            _build("x += 1;")

    def test_funcall_statement(self):
        assert _items("putint(x);") == [Funcall("putint", (Identifier("x"),))]

    def test_source_order_preserved(self):
        kinds = [type(n) for n in _items("int x; x = 1; putint(x);")]
        assert kinds == [Declaration, Assignment, Funcall]

    def test_empty_statements_and_comments_dropped(self):
        assert _items("; /* note */ x = 1; // done\n;") == [Assignment("x", Number("1"))]

    def test_nested_compound_block(self):
        (block,) = _items("{ x = 1; }")
        assert block == Block(items=(BlockItem(Assignment("x", Number("1"))),))

    def test_unsupported_statement(self):
        with pytest.raises(StructuralError, match="for_statement"):
            _build("for (x = 0; x < 3; x = x + 1) { putint(x); }")

    def test_empty_program(self):
        assert _build("").items == ()


class TestExpressions:
    def test_arithmetic(self):
        (assign,) = _items("x = a + 2;")
        assert assign.expression == BinaryOperation("+", Identifier("a"), Number("2"))

    def test_parentheses_are_unwrapped(self):
        (assign,) = _items("x = (a - 1) * b;")
        assert assign.expression == BinaryOperation(
            "*", BinaryOperation("-", Identifier("a"), Number("1")), Identifier("b")
        )

    def test_negative_literal(self):
        (assign,) = _items("x = -1;")
        assert assign.expression == Number("-1")

    def test_subtraction_is_not_a_negative_literal(self):
        (assign,) = _items("x = y - 1;")
        assert assign.expression == BinaryOperation("-", Identifier("y"), Number("1"))

    def test_nested_funcall(self):
        (call,) = _items("putint(getint());")
        assert call == Funcall("putint", (Funcall("getint"),))

    def test_comparison_as_value_rejected(self):
        with pytest.raises(StructuralError, match="condition"):
            _build("x = a < b;")

    def test_negated_identifier_rejected(self):
        with pytest.raises(StructuralError):
            _build("x = -y;")


class TestControlFlow:
    def test_while_with_block_body(self):
        (loop,) = _items("while (x < 3) { x = x + 1; }")
        assert loop == While(
            Comparison("<", Identifier("x"), Number("3")),
            Block(
                items=(
                    BlockItem(
                        Assignment("x", BinaryOperation("+", Identifier("x"), Number("1")))
                    ),
                )
            ),
        )

    def test_single_statement_body_is_wrapped(self):
        (loop,) = _items("while (x < 3) x = x + 1;")
        assert isinstance(loop.body, Block)
        assert len(loop.body.items) == 1

    def test_if_without_else(self):
        (branch,) = _items("if (x > 0) putint(x);")
        assert isinstance(branch, If)
        assert branch.else_body is None
        assert branch.condition == Comparison(">", Identifier("x"), Number("0"))

    def test_if_else(self):
        (branch,) = _items("if (x == 0) { putint(1); } else { putint(0); }")
        assert branch.then_body.items[0].content == Funcall("putint", (Number("1"),))
        assert branch.else_body.items[0].content == Funcall("putint", (Number("0"),))

    def test_else_if_chain(self):
        (branch,) = _items("if (x == 0) putint(0); else if (x == 1) putint(1);")
        nested = branch.else_body.items[0].content
        assert isinstance(nested, If)
        assert nested.condition.operator == "=="

    def test_doubled_parentheses_in_condition(self):
        (loop,) = _items("while ((x <= 2)) x = x + 1;")
        assert loop.condition.operator == "<="

    def test_non_comparison_condition_rejected(self):
        with pytest.raises(StructuralError, match="comparison"):
            _build("if (x) putint(x);")

    def test_arithmetic_condition_rejected(self):
        with pytest.raises(StructuralError, match="'\\+'"):
            _build("while (x + 1) x = 0;")

    def test_logical_condition_rejected(self):
        with pytest.raises(StructuralError):
            _build("if (x < 1 && y < 1) putint(x);")


class TestLiteralValidation:
    def test_out_of_range_rejected(self):
        with pytest.raises(LiteralRangeError, match=r"literal 7 .*\[-1, 5\]"):
            _build("int x = 7;")

    def test_negative_out_of_range_rejected(self):
        with pytest.raises(LiteralRangeError, match="-2"):
            _build("x = -2;")

    def test_float_literal_rejected(self):
        with pytest.raises(LiteralRangeError):
            _build("float y = 2.5;")

    def test_lenient_accepts_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cminus.builder"):
            (decl,) = _items("int x = 7;", CompilerConfig(lenient=True))
        assert decl.assignment.expression == Number("7")
        assert "literal 7" in caplog.text

    def test_error_names_location(self):
        with pytest.raises(LiteralRangeError) as excinfo:
            _build("int a = 1;\nint x = 9;")
        assert excinfo.value.location.start_line == 2
        assert str(excinfo.value).startswith("2:")


class TestBuiltinValidation:
    def test_unknown_function_rejected(self):
        with pytest.raises(BuiltinCallError, match="'print'"):
            _build("print(1);")

    def test_putint_arity(self):
        with pytest.raises(BuiltinCallError, match="expected 1 argument"):
            _build("putint(1, 2);")

    def test_putint_without_arguments(self):
        with pytest.raises(BuiltinCallError):
            _build("putint();")

    def test_getint_arity(self):
        with pytest.raises(BuiltinCallError, match="expected 0"):
            _build("x = getint(1);")

    def test_lenient_keeps_call(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cminus.builder"):
            (call,) = _items("print(1);", CompilerConfig(lenient=True))
        assert call == Funcall("print", (Number("1"),))
        assert "print" in caplog.text


class TestParseErrors:
    def test_syntax_error(self):
        with pytest.raises(ParseError):
            _build("int x = ;")

    def test_missing_semicolon(self):
        with pytest.raises(ParseError):
            _build("x = 1")
