"""Stack-machine instruction records."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Opcode(str, Enum):
    # Push small constants
    ICONST_M1 = "iconst_m1"
    ICONST_0 = "iconst_0"
    ICONST_1 = "iconst_1"
    ICONST_2 = "iconst_2"
    ICONST_3 = "iconst_3"
    ICONST_4 = "iconst_4"
    ICONST_5 = "iconst_5"
    # Named slots
    ILOAD = "iload"
    ISTORE = "istore"
    # Arithmetic
    IADD = "iadd"
    ISUB = "isub"
    IMUL = "imul"
    IDIV = "idiv"
    # Control flow
    IF_ICMPEQ = "if_icmpeq"
    IF_ICMPNE = "if_icmpne"
    IF_ICMPLT = "if_icmplt"
    IF_ICMPGE = "if_icmpge"
    IF_ICMPGT = "if_icmpgt"
    IF_ICMPLE = "if_icmple"
    GOTO = "goto"
    # Builtin routines
    CALL = "call"
    # Labels (pseudo-instruction)
    LABEL = "label"


PUSH_CONSTANT: dict[int, Opcode] = {
    -1: Opcode.ICONST_M1,
    0: Opcode.ICONST_0,
    1: Opcode.ICONST_1,
    2: Opcode.ICONST_2,
    3: Opcode.ICONST_3,
    4: Opcode.ICONST_4,
    5: Opcode.ICONST_5,
}

ARITHMETIC: dict[str, Opcode] = {
    "+": Opcode.IADD,
    "-": Opcode.ISUB,
    "*": Opcode.IMUL,
    "/": Opcode.IDIV,
}

# Jump taken when the source comparison does NOT hold
NEGATED_BRANCH: dict[str, Opcode] = {
    "==": Opcode.IF_ICMPNE,
    "!=": Opcode.IF_ICMPEQ,
    "<": Opcode.IF_ICMPGE,
    "<=": Opcode.IF_ICMPGT,
    ">": Opcode.IF_ICMPLE,
    ">=": Opcode.IF_ICMPLT,
}


class SourceLocation(BaseModel):
    """Structured source span from tree-sitter AST nodes."""

    model_config = ConfigDict(frozen=True)

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def is_unknown(self) -> bool:
        return (
            self.start_line == 0
            and self.start_col == 0
            and self.end_line == 0
            and self.end_col == 0
        )

    def __str__(self) -> str:
        if self.is_unknown():
            return "<unknown>"
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


NO_SOURCE_LOCATION = SourceLocation(start_line=0, start_col=0, end_line=0, end_col=0)


class Instruction(BaseModel):
    opcode: Opcode
    operands: list[str] = []
    label: str | None = None  # for LABEL / branch targets

    def is_label(self) -> bool:
        return self.opcode == Opcode.LABEL

    def __str__(self) -> str:
        if self.label and self.opcode == Opcode.LABEL:
            return f"{self.label}:"
        parts = [self.opcode.value, *self.operands]
        if self.label:
            parts.append(self.label)
        return " ".join(parts)


def label(name: str) -> Instruction:
    return Instruction(opcode=Opcode.LABEL, label=name)


def jump(opcode: Opcode, target: str) -> Instruction:
    return Instruction(opcode=opcode, label=target)
