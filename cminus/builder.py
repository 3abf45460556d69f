"""ASTBuilder — tree-sitter C parse tree -> C-minus AST."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .config import CompilerConfig
from .errors import BuiltinCallError, LiteralRangeError, StructuralError
from .nodes import (
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
    Node,
    Number,
    While,
)
from .parser import ParsedProgram, source_location
from . import constants

logger = logging.getLogger(__name__)


class ASTBuilder:
    """Maps each tree-sitter rule onto exactly one AST node variant.

    Validation happens here, once, over the whole tree: a tree returned by
    :meth:`build` can be emitted without failure.
    """

    COMMENT_TYPES: frozenset[str] = frozenset({"comment"})

    IF_CONDITION_FIELD: str = "condition"
    IF_CONSEQUENCE_FIELD: str = "consequence"
    IF_ALTERNATIVE_FIELD: str = "alternative"

    WHILE_CONDITION_FIELD: str = "condition"
    WHILE_BODY_FIELD: str = "body"

    CALL_FUNCTION_FIELD: str = "function"
    CALL_ARGUMENTS_FIELD: str = "arguments"

    ASSIGN_LEFT_FIELD: str = "left"
    ASSIGN_RIGHT_FIELD: str = "right"

    def __init__(self, config: CompilerConfig = CompilerConfig()):
        self._config = config
        self._source: bytes = b""
        self._STMT_DISPATCH: dict[str, Callable] = {
            "declaration": self._build_declaration,
            "expression_statement": self._build_expression_statement,
            "if_statement": self._build_if,
            "while_statement": self._build_while,
            "compound_statement": self._build_block,
        }
        self._EXPR_DISPATCH: dict[str, Callable] = {
            "identifier": self._build_identifier,
            "number_literal": self._build_number,
            "unary_expression": self._build_negative_number,
            "parenthesized_expression": self._build_paren,
            "call_expression": self._build_funcall,
            "binary_expression": self._build_arithmetic,
        }

    # ── helpers ──────────────────────────────────────────────────

    def _node_text(self, node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def _named_children(self, node) -> list:
        return [
            c for c in node.children if c.is_named and c.type not in self.COMMENT_TYPES
        ]

    def _unsupported(self, node, what: str) -> StructuralError:
        return StructuralError(
            f"unsupported {what} '{node.type}'", source_location(node)
        )

    def _field(self, node, name: str):
        child = node.child_by_field_name(name)
        if child is None:
            raise StructuralError(
                f"'{node.type}' is missing its {name}", source_location(node)
            )
        return child

    # ── entry point ──────────────────────────────────────────────

    def build(self, parsed: ParsedProgram) -> Block:
        self._source = parsed.source
        body = self._program_body(parsed.tree.root_node)
        program = self._build_block(body)
        logger.info("Built AST with %d top-level items", len(program.items))
        return program

    def _program_body(self, root):
        items = self._named_children(root)
        wrapper = items[0] if len(items) == 1 else None
        if wrapper is None or wrapper.type != "function_definition":
            raise StructuralError(
                "program must be a sequence of declarations and statements",
                source_location(root),
            )
        return self._field(wrapper, "body")

    # ── blocks & statements ──────────────────────────────────────

    def _build_block(self, node) -> Block:
        items = []
        for child in self._named_children(node):
            content = self._build_statement(child)
            if content is None:
                continue
            items.append(BlockItem(content, location=content.location))
        return Block(items=tuple(items), location=source_location(node))

    def _build_statement(self, node) -> Optional[Node]:
        handler = self._STMT_DISPATCH.get(node.type)
        if handler is None:
            raise self._unsupported(node, "statement")
        return handler(node)

    def _build_body(self, node) -> Block:
        """Normalize a branch or loop body: a lone statement becomes a one-item block."""
        content = self._build_statement(node)
        if content is None:
            return Block(location=source_location(node))
        return Block.of(content)

    def _build_declaration(self, node) -> Node:
        loc = source_location(node)
        type_node = self._field(node, "type")
        type_tag = self._node_text(type_node)
        declarators = node.children_by_field_name("declarator")
        allowed = {type_node.id, *(d.id for d in declarators)}
        for child in self._named_children(node):
            if child.id not in allowed:
                raise self._unsupported(child, "declaration specifier")
        if len(declarators) != 1:
            raise StructuralError(
                "a declaration must declare exactly one identifier", loc
            )
        declarator = declarators[0]

        if declarator.type == "identifier":
            return Declaration(self._node_text(declarator), type_tag, location=loc)

        if declarator.type != "init_declarator":
            raise self._unsupported(declarator, "declarator")
        name_node = self._field(declarator, "declarator")
        if name_node.type != "identifier":
            raise self._unsupported(name_node, "declarator")
        identifier = self._node_text(name_node)
        declaration = Declaration(identifier, type_tag, location=loc)
        expr = self._build_expr(self._field(declarator, "value"))
        assignment = Assignment(
            identifier, expr, location=source_location(declarator)
        )
        return DeclarationWithInit(declaration, assignment, location=loc)

    def _build_expression_statement(self, node) -> Optional[Node]:
        children = self._named_children(node)
        if not children:
            return None
        expr = children[0]
        if expr.type == "assignment_expression":
            return self._build_assignment(expr)
        if expr.type == "call_expression":
            return self._build_funcall(expr)
        raise self._unsupported(expr, "statement")

    def _build_assignment(self, node) -> Assignment:
        left = self._field(node, self.ASSIGN_LEFT_FIELD)
        right = self._field(node, self.ASSIGN_RIGHT_FIELD)
        operator = node.child_by_field_name("operator")
        op_text = self._node_text(operator) if operator else constants.ASSIGNMENT_OPERATOR
        if op_text != constants.ASSIGNMENT_OPERATOR:
            raise StructuralError(
                f"unsupported assignment operator '{op_text}'", source_location(node)
            )
        if left.type != "identifier":
            raise self._unsupported(left, "assignment target")
        return Assignment(
            self._node_text(left),
            self._build_expr(right),
            location=source_location(node),
        )

    def _build_if(self, node) -> If:
        condition = self._build_condition(self._field(node, self.IF_CONDITION_FIELD))
        then_body = self._build_body(self._field(node, self.IF_CONSEQUENCE_FIELD))
        alt_node = node.child_by_field_name(self.IF_ALTERNATIVE_FIELD)
        else_body = None
        if alt_node is not None:
            if alt_node.type == "else_clause":
                alt_children = self._named_children(alt_node)
                if not alt_children:
                    raise StructuralError(
                        "else without a statement", source_location(alt_node)
                    )
                alt_node = alt_children[0]
            else_body = self._build_body(alt_node)
        return If(condition, then_body, else_body, location=source_location(node))

    def _build_while(self, node) -> While:
        condition = self._build_condition(self._field(node, self.WHILE_CONDITION_FIELD))
        body = self._build_body(self._field(node, self.WHILE_BODY_FIELD))
        return While(condition, body, location=source_location(node))

    # ── conditions ───────────────────────────────────────────────

    def _build_condition(self, node) -> Comparison:
        """The only producer of condition-position nodes."""
        inner = self._unwrap_parens(node)
        if inner.type != "binary_expression":
            raise StructuralError(
                "condition must be a comparison", source_location(inner)
            )
        operator = self._node_text(self._field(inner, "operator"))
        if operator not in constants.COMPARISON_OPERATORS:
            raise StructuralError(
                f"condition must be a comparison, found operator '{operator}'",
                source_location(inner),
            )
        return Comparison(
            operator,
            self._build_expr(self._field(inner, "left")),
            self._build_expr(self._field(inner, "right")),
            location=source_location(inner),
        )

    def _unwrap_parens(self, node):
        while node.type == "parenthesized_expression":
            children = self._named_children(node)
            if len(children) != 1:
                raise self._unsupported(node, "expression")
            node = children[0]
        return node

    # ── expressions ──────────────────────────────────────────────

    def _build_expr(self, node) -> Node:
        handler = self._EXPR_DISPATCH.get(node.type)
        if handler is None:
            raise self._unsupported(node, "expression")
        return handler(node)

    def _build_identifier(self, node) -> Identifier:
        return Identifier(self._node_text(node), location=source_location(node))

    def _build_number(self, node, sign: str = "") -> Number:
        number = Number(sign + self._node_text(node), location=source_location(node))
        if not number.in_range:
            if not self._config.lenient:
                raise LiteralRangeError(number.text, number.location)
            logger.warning(
                "%s: literal %s is outside [%d, %d]; it will be pushed as 0",
                number.location,
                number.text,
                constants.MIN_LITERAL,
                constants.MAX_LITERAL,
            )
        return number

    def _build_negative_number(self, node) -> Number:
        """``-N``: the minus sign is folded into the literal text."""
        operator = self._node_text(self._field(node, "operator"))
        argument = self._field(node, "argument")
        if operator != constants.NEGATIVE_SIGN or argument.type != "number_literal":
            raise self._unsupported(node, "expression")
        return self._build_number(argument, sign=operator)

    def _build_paren(self, node) -> Node:
        return self._build_expr(self._unwrap_parens(node))

    def _build_arithmetic(self, node) -> BinaryOperation:
        operator = self._node_text(self._field(node, "operator"))
        if operator in constants.COMPARISON_OPERATORS:
            raise StructuralError(
                f"comparison '{operator}' is only allowed as an if/while condition",
                source_location(node),
            )
        if operator not in constants.ARITHMETIC_OPERATORS:
            raise StructuralError(
                f"unsupported operator '{operator}'", source_location(node)
            )
        return BinaryOperation(
            operator,
            self._build_expr(self._field(node, "left")),
            self._build_expr(self._field(node, "right")),
            location=source_location(node),
        )

    def _build_funcall(self, node) -> Funcall:
        func_node = self._field(node, self.CALL_FUNCTION_FIELD)
        if func_node.type != "identifier":
            raise self._unsupported(func_node, "call target")
        args_node = node.child_by_field_name(self.CALL_ARGUMENTS_FIELD)
        arguments = (
            tuple(self._build_expr(c) for c in self._named_children(args_node))
            if args_node is not None
            else ()
        )
        funcall = Funcall(
            self._node_text(func_node), arguments, location=source_location(node)
        )
        self._check_builtin(funcall)
        return funcall

    def _check_builtin(self, funcall: Funcall):
        expected = constants.BUILTIN_ARITY.get(funcall.name)
        if expected is None:
            error = BuiltinCallError(
                funcall.name,
                "unknown function (available: "
                + ", ".join(sorted(constants.BUILTIN_ARITY))
                + ")",
                funcall.location,
            )
        elif len(funcall.arguments) != expected:
            error = BuiltinCallError(
                funcall.name,
                f"expected {expected} argument(s), got {len(funcall.arguments)}",
                funcall.location,
            )
        else:
            return
        if not self._config.lenient:
            raise error
        logger.warning("%s (lenient: compiled as the original tool did)", error)


def build_ast(parsed: ParsedProgram, config: CompilerConfig = CompilerConfig()) -> Block:
    """Build and validate the AST for a parsed program."""
    return ASTBuilder(config).build(parsed)
