"""Assembly text formatting and class-file writing."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .ir import Instruction
from . import constants

logger = logging.getLogger(__name__)


def format_assembly(instructions: list[Instruction]) -> str:
    """One line per instruction; labels flush left, everything else indented."""
    lines = [
        str(inst) if inst.is_label() else f"{constants.INSTRUCTION_INDENT}{inst}"
        for inst in instructions
    ]
    return "".join(f"{line}\n" for line in lines)


def render_class_file(class_name: str, instructions: list[Instruction]) -> str:
    return (
        f"{constants.CLASS_DIRECTIVE} {class_name}\n\n"
        f"{constants.MAIN_DIRECTIVE}\n"
        f"{format_assembly(instructions)}\n"
        f"{constants.RETURN_TRAILER}\n"
    )


def derive_class_name(path: str | Path) -> str:
    """``loop.cminus`` -> ``loop``; other extensions are kept."""
    return re.sub(constants.SOURCE_EXTENSION_PATTERN, "", Path(path).name)


def write_class_file(
    output_dir: str | Path, class_name: str, instructions: list[Instruction]
) -> Path:
    target = Path(output_dir) / f"{class_name}{constants.OUTPUT_EXTENSION}"
    target.write_text(render_class_file(class_name, instructions), encoding="utf-8")
    logger.info("Wrote %s (%d instructions)", target, len(instructions))
    return target
