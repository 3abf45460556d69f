"""Pure functions for computing statistics over instruction lists."""

from __future__ import annotations

from collections import Counter

from cminus.ir import Instruction


def count_opcodes(instructions: list[Instruction]) -> dict[str, int]:
    """Return a frequency map of mnemonics in the given instruction list.

    Args:
        instructions: A list of instructions.

    Returns:
        A dict mapping mnemonic strings to their occurrence counts.
        Empty dict for an empty input list.
    """
    return dict(Counter(inst.opcode.value for inst in instructions))
