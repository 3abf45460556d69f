"""Reference stack machine for emitted instruction lists.

Used to check emitted code against source semantics; it is not part of the
compilation pipeline.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .config import ExecutionStats, VMConfig
from .errors import VMError
from .ir import PUSH_CONSTANT, Instruction, Opcode
from . import constants

logger = logging.getLogger(__name__)

_INT_BITS = 32

CONSTANT_VALUE: dict[Opcode, int] = {op: value for value, op in PUSH_CONSTANT.items()}

BRANCH_TAKEN: dict[Opcode, Callable[[int, int], bool]] = {
    Opcode.IF_ICMPEQ: operator.eq,
    Opcode.IF_ICMPNE: operator.ne,
    Opcode.IF_ICMPLT: operator.lt,
    Opcode.IF_ICMPGE: operator.ge,
    Opcode.IF_ICMPGT: operator.gt,
    Opcode.IF_ICMPLE: operator.le,
}


def wrap_int32(value: int) -> int:
    value &= (1 << _INT_BITS) - 1
    if value >= 1 << (_INT_BITS - 1):
        value -= 1 << _INT_BITS
    return value


def _divide(left: int, right: int) -> int:
    if right == 0:
        raise VMError("division by zero")
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


ARITHMETIC_RESULT: dict[Opcode, Callable[[int, int], int]] = {
    Opcode.IADD: operator.add,
    Opcode.ISUB: operator.sub,
    Opcode.IMUL: operator.mul,
    Opcode.IDIV: _divide,
}


@dataclass
class VMState:
    stack: list[int] = field(default_factory=list)
    slots: dict[str, int] = field(default_factory=dict)
    output: list[int] = field(default_factory=list)
    inputs: list[int] = field(default_factory=list)
    pc: int = 0

    def pop(self) -> int:
        if not self.stack:
            raise VMError(f"stack underflow at instruction {self.pc}")
        return self.stack.pop()

    def to_dict(self) -> dict:
        return {
            "stack": list(self.stack),
            "slots": dict(self.slots),
            "output": list(self.output),
        }


def resolve_labels(instructions: list[Instruction]) -> dict[str, int]:
    return {
        inst.label: i for i, inst in enumerate(instructions) if inst.is_label()
    }


def _call(state: VMState, routine: str):
    if routine == constants.BUILTIN_PUTINT:
        state.output.append(state.pop())
    elif routine == constants.BUILTIN_GETINT:
        if not state.inputs:
            raise VMError("getint: input exhausted")
        state.stack.append(wrap_int32(state.inputs.pop(0)))
    else:
        raise VMError(f"unknown routine '{routine}'")


def execute(
    instructions: list[Instruction],
    inputs: Iterable[int] = (),
    config: VMConfig = VMConfig(),
) -> tuple[VMState, ExecutionStats]:
    """Run *instructions* from the first one until control falls off the end."""
    labels = resolve_labels(instructions)
    state = VMState(inputs=list(inputs))
    stats = ExecutionStats()

    def _target(inst: Instruction) -> int:
        if inst.label not in labels:
            raise VMError(f"jump to undefined label '{inst.label}'")
        return labels[inst.label]

    while state.pc < len(instructions):
        if stats.steps >= config.max_steps:
            logger.warning("Stopped after %d steps", stats.steps)
            return state, stats
        inst = instructions[state.pc]
        stats.steps += 1
        next_pc = state.pc + 1
        op = inst.opcode

        if op in CONSTANT_VALUE:
            state.stack.append(CONSTANT_VALUE[op])
        elif op == Opcode.ILOAD:
            name = inst.operands[0]
            if name not in state.slots:
                raise VMError(f"slot '{name}' read before it was stored")
            state.stack.append(state.slots[name])
        elif op == Opcode.ISTORE:
            state.slots[inst.operands[0]] = state.pop()
        elif op in ARITHMETIC_RESULT:
            right = state.pop()
            left = state.pop()
            state.stack.append(wrap_int32(ARITHMETIC_RESULT[op](left, right)))
        elif op in BRANCH_TAKEN:
            right = state.pop()
            left = state.pop()
            if BRANCH_TAKEN[op](left, right):
                next_pc = _target(inst)
        elif op == Opcode.GOTO:
            next_pc = _target(inst)
        elif op == Opcode.CALL:
            _call(state, inst.operands[0])
        # LABEL: no-op

        state.pc = next_pc

    stats.completed = True
    logger.debug("Execution finished in %d steps", stats.steps)
    return state, stats
