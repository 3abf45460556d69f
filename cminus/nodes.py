"""AST node model for C-minus programs.

Nodes are frozen dataclasses built once by :mod:`cminus.builder` and never
mutated afterwards. Constructors validate their own shape, so a tree that
exists is a tree the emitter can lower without failing.
"""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field
from typing import ClassVar, Optional

from .errors import StructuralError
from .ir import NO_SOURCE_LOCATION, SourceLocation
from . import constants

_INTEGER_LITERAL = re.compile(r"[-+]?[0-9]+")


def _indent(text: str) -> str:
    return textwrap.indent(text, constants.RENDER_INDENT, lambda line: True)


@dataclass(frozen=True)
class Node:
    location: SourceLocation = field(
        default_factory=lambda: NO_SOURCE_LOCATION,
        compare=False,
        repr=False,
        kw_only=True,
    )

    def render(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()


def _require_value(node: Node, owner: Node, role: str):
    if isinstance(node, Comparison):
        raise StructuralError(
            f"comparison '{node.operator}' cannot be used as a value ({role})",
            node.location,
        )
    if not isinstance(node, VALUE_NODES):
        raise StructuralError(
            f"{type(node).__name__} cannot be used as a value ({role})",
            owner.location,
        )


def _require_condition(node: Node, owner: Node):
    if not isinstance(node, Comparison):
        raise StructuralError(
            "condition must be a comparison using one of "
            + " ".join(sorted(constants.COMPARISON_OPERATORS)),
            node.location if isinstance(node, Node) else owner.location,
        )


def _require_block(node: Node, owner: Node, role: str):
    if not isinstance(node, Block):
        raise StructuralError(f"{role} must be a block", owner.location)


# ── leaves ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Identifier(Node):
    name: str

    def render(self) -> str:
        return f'"{self.name}"'


@dataclass(frozen=True)
class Number(Node):
    text: str

    @property
    def value(self) -> Optional[int]:
        """Integer value of a plain decimal literal, ``None`` otherwise."""
        if _INTEGER_LITERAL.fullmatch(self.text) is None:
            return None
        return int(self.text)

    @property
    def in_range(self) -> bool:
        value = self.value
        return value is not None and constants.MIN_LITERAL <= value <= constants.MAX_LITERAL

    def render(self) -> str:
        return self.text


# ── expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class BinaryOperation(Node):
    """Arithmetic operation producing a value on the evaluation stack."""

    OPERATORS: ClassVar[frozenset[str]] = constants.ARITHMETIC_OPERATORS

    operator: str
    left: Node
    right: Node

    def __post_init__(self):
        if self.operator not in self.OPERATORS:
            raise StructuralError(
                f"operator '{self.operator}' is not valid in {type(self).__name__}",
                self.location,
            )
        _require_value(self.left, self, "left operand")
        _require_value(self.right, self, "right operand")

    def render(self) -> str:
        return f"({self.operator} {self.left.render()} {self.right.render()})"


@dataclass(frozen=True)
class Comparison(BinaryOperation):
    """Binary operation in condition position; lowered to a branch."""

    OPERATORS: ClassVar[frozenset[str]] = constants.COMPARISON_OPERATORS


@dataclass(frozen=True)
class Funcall(Node):
    name: str
    arguments: tuple[Node, ...] = ()

    def __post_init__(self):
        for i, arg in enumerate(self.arguments):
            _require_value(arg, self, f"argument {i + 1} of {self.name}")

    def render(self) -> str:
        return "(" + " ".join([self.name, *(a.render() for a in self.arguments)]) + ")"


VALUE_NODES = (Identifier, Number, BinaryOperation, Funcall)


# ── statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Declaration(Node):
    identifier: str
    type_tag: str

    def __post_init__(self):
        if self.type_tag not in constants.TYPE_TAGS:
            raise StructuralError(
                f"unsupported type '{self.type_tag}' for '{self.identifier}' "
                f"(expected one of: {', '.join(sorted(constants.TYPE_TAGS))})",
                self.location,
            )

    def render(self) -> str:
        return f'(declare "{self.identifier}" {self.type_tag})'


@dataclass(frozen=True)
class Assignment(Node):
    identifier: str
    expression: Node

    def __post_init__(self):
        _require_value(self.expression, self, f"assigned to '{self.identifier}'")

    def render(self) -> str:
        return f'(assign "{self.identifier}" {self.expression.render()})'


@dataclass(frozen=True)
class DeclarationWithInit(Node):
    declaration: Declaration
    assignment: Assignment

    def __post_init__(self):
        if self.declaration.identifier != self.assignment.identifier:
            raise StructuralError(
                f"initializer targets '{self.assignment.identifier}' "
                f"but declares '{self.declaration.identifier}'",
                self.location,
            )

    def render(self) -> str:
        return self.declaration.render() + "\n" + self.assignment.render()


@dataclass(frozen=True)
class BlockItem(Node):
    content: Node

    def render(self) -> str:
        return self.content.render()


@dataclass(frozen=True)
class Block(Node):
    items: tuple[BlockItem, ...] = ()

    @classmethod
    def of(cls, node: Node) -> Block:
        """Normalize a branch or loop body into a block."""
        if isinstance(node, Block):
            return node
        return cls(items=(BlockItem(node, location=node.location),), location=node.location)

    def render(self) -> str:
        lines = ["["]
        lines.extend(_indent(item.render()) for item in self.items)
        lines.append("]")
        return "\n".join(lines)


@dataclass(frozen=True)
class While(Node):
    condition: Comparison
    body: Block

    def __post_init__(self):
        _require_condition(self.condition, self)
        _require_block(self.body, self, "loop body")

    def render(self) -> str:
        return f"(while {self.condition.render()}\n{_indent(self.body.render())}\n)"


@dataclass(frozen=True)
class If(Node):
    condition: Comparison
    then_body: Block
    else_body: Optional[Block] = None

    def __post_init__(self):
        _require_condition(self.condition, self)
        _require_block(self.then_body, self, "then branch")
        if self.else_body is not None:
            _require_block(self.else_body, self, "else branch")

    def render(self) -> str:
        parts = [f"(if {self.condition.render()}", _indent(self.then_body.render())]
        if self.else_body is not None:
            parts.append(_indent(self.else_body.render()))
        parts.append(")")
        return "\n".join(parts)
