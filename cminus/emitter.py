"""Emitter: C-minus AST -> stack-machine instructions.

A single depth-first pass. The only state touched is the label allocator;
nodes are read, never modified.

Structured control flow is lowered with one trick: the condition is emitted
as a branch on its *negation*, jumping past the guarded region when the
source comparison does not hold.
"""

from __future__ import annotations

import logging
from typing import Callable

from .ir import (
    ARITHMETIC,
    NEGATED_BRANCH,
    PUSH_CONSTANT,
    Instruction,
    Opcode,
    jump,
    label,
)
from .labels import LabelAllocator
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
from . import constants

logger = logging.getLogger(__name__)


class Emitter:
    def __init__(self, allocator: LabelAllocator | None = None):
        self._labels = allocator if allocator is not None else LabelAllocator()
        self._DISPATCH: dict[type, Callable[[Node], list[Instruction]]] = {
            Block: self._emit_block,
            BlockItem: self._emit_block_item,
            Declaration: self._emit_declaration,
            DeclarationWithInit: self._emit_declaration_with_init,
            Assignment: self._emit_assignment,
            Funcall: self._emit_funcall,
            While: self._emit_while,
            If: self._emit_if,
            BinaryOperation: self._emit_arithmetic,
            Identifier: self._emit_identifier,
            Number: self._emit_number,
        }

    def emit(self, node: Node) -> list[Instruction]:
        handler = self._DISPATCH.get(type(node))
        if handler is None:
            if isinstance(node, Comparison):
                raise TypeError(
                    "a comparison has no value; lower it with emit_branch()"
                )
            raise TypeError(f"no emission rule for {type(node).__name__}")
        return handler(node)

    def emit_branch(self, condition: Comparison, target: str) -> list[Instruction]:
        """Evaluate both operands, then jump to *target* when the comparison is false."""
        return [
            *self.emit(condition.left),
            *self.emit(condition.right),
            jump(NEGATED_BRANCH[condition.operator], target),
        ]

    # ── blocks & statements ──────────────────────────────────────

    def _emit_block(self, node: Block) -> list[Instruction]:
        instructions: list[Instruction] = []
        for item in node.items:
            instructions.extend(self.emit(item))
        return instructions

    def _emit_block_item(self, node: BlockItem) -> list[Instruction]:
        return self.emit(node.content)

    def _emit_declaration(self, node: Declaration) -> list[Instruction]:
        # Slots are referenced by name; nothing to allocate.
        return []

    def _emit_declaration_with_init(self, node: DeclarationWithInit) -> list[Instruction]:
        return self.emit(node.assignment)

    def _emit_assignment(self, node: Assignment) -> list[Instruction]:
        return [
            *self.emit(node.expression),
            Instruction(opcode=Opcode.ISTORE, operands=[node.identifier]),
        ]

    def _emit_funcall(self, node: Funcall) -> list[Instruction]:
        if node.name == constants.BUILTIN_PUTINT:
            if len(node.arguments) != 1:
                logger.warning(
                    "%s: putint with %d arguments emits nothing",
                    node.location,
                    len(node.arguments),
                )
                return []
            return [
                *self.emit(node.arguments[0]),
                Instruction(opcode=Opcode.CALL, operands=[constants.BUILTIN_PUTINT]),
            ]
        if node.name == constants.BUILTIN_GETINT:
            return [Instruction(opcode=Opcode.CALL, operands=[constants.BUILTIN_GETINT])]
        logger.warning("%s: unknown function '%s' emits nothing", node.location, node.name)
        return []

    # ── control flow ─────────────────────────────────────────────

    def _emit_while(self, node: While) -> list[Instruction]:
        start, end = self._labels.allocate(
            constants.WHILE_START_LABEL, constants.WHILE_END_LABEL
        )
        return [
            label(start),
            *self.emit_branch(node.condition, end),
            *self.emit(node.body),
            jump(Opcode.GOTO, start),
            label(end),
        ]

    def _emit_if(self, node: If) -> list[Instruction]:
        if node.else_body is None:
            (skip,) = self._labels.allocate(constants.SKIP_LABEL)
            return [
                *self.emit_branch(node.condition, skip),
                *self.emit(node.then_body),
                label(skip),
            ]
        else_label, end = self._labels.allocate(
            constants.ELSE_LABEL, constants.ENDIF_LABEL
        )
        return [
            *self.emit_branch(node.condition, else_label),
            *self.emit(node.then_body),
            jump(Opcode.GOTO, end),
            label(else_label),
            *self.emit(node.else_body),
            label(end),
        ]

    # ── expressions ──────────────────────────────────────────────

    def _emit_arithmetic(self, node: BinaryOperation) -> list[Instruction]:
        return [
            *self.emit(node.left),
            *self.emit(node.right),
            Instruction(opcode=ARITHMETIC[node.operator]),
        ]

    def _emit_identifier(self, node: Identifier) -> list[Instruction]:
        return [Instruction(opcode=Opcode.ILOAD, operands=[node.name])]

    def _emit_number(self, node: Number) -> list[Instruction]:
        opcode = PUSH_CONSTANT.get(node.value) if node.in_range else None
        if opcode is None:
            logger.warning("%s: literal %s pushed as 0", node.location, node.text)
            opcode = Opcode.ICONST_0
        return [Instruction(opcode=opcode)]


def emit_program(program: Block, allocator: LabelAllocator | None = None) -> list[Instruction]:
    """Lower a whole program with a fresh allocator unless one is supplied."""
    instructions = Emitter(allocator).emit(program)
    logger.info("Emitted %d instructions", len(instructions))
    return instructions
