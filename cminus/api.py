"""Composable API functions for the C-minus compiler pipeline.

Each function corresponds to a CLI workflow but is callable programmatically
without argparse.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from .builder import build_ast as _build_ast
from .config import CompilerConfig, ExecutionStats, VMConfig
from .emitter import emit_program
from .formatter import derive_class_name, format_assembly, write_class_file
from .ir import Instruction
from .labels import LabelAllocator
from .nodes import Block
from .parser import ParsedProgram, Parser, TreeSitterParserFactory
from .stats import count_opcodes
from .vm import VMState, execute

logger = logging.getLogger(__name__)


def parse_source(source: str) -> ParsedProgram:
    """Parse C-minus source with the tree-sitter C grammar.

    Raises:
        ParseError: If the source does not parse.
    """
    logger.info("Parsing source (%d bytes)", len(source))
    return Parser(TreeSitterParserFactory()).parse(source)


def build_ast(source: str, config: CompilerConfig = CompilerConfig()) -> Block:
    """Parse and build the validated AST for *source*."""
    return _build_ast(parse_source(source), config)


def compile_source(
    source: str,
    config: CompilerConfig = CompilerConfig(),
    allocator: Optional[LabelAllocator] = None,
) -> list[Instruction]:
    """Parse, build and emit *source*.

    Args:
        source: The C-minus program text.
        config: Compilation options.
        allocator: Label allocator to draw from; a fresh one by default, so
            repeated compilations of the same source are identical.

    Returns:
        The ordered instruction list.
    """
    program = build_ast(source, config)
    return emit_program(program, allocator)


def dump_ast(source: str, config: CompilerConfig = CompilerConfig()) -> str:
    """Return the structural dump of the AST for *source*."""
    return build_ast(source, config).render()


def dump_assembly(source: str, config: CompilerConfig = CompilerConfig()) -> str:
    """Compile *source* and return the formatted instruction text (no header)."""
    return format_assembly(compile_source(source, config))


def compile_file(
    input_path: str | Path,
    output_dir: str | Path = ".",
    config: CompilerConfig = CompilerConfig(),
) -> Path:
    """Compile a source file and write ``<class>.jasm`` into *output_dir*.

    Nothing is written unless the whole program compiles.

    Returns:
        The path of the written file.
    """
    input_path = Path(input_path)
    class_name = derive_class_name(input_path)
    logger.info("Compiling %s as class %s", input_path, class_name)
    instructions = compile_source(input_path.read_text(encoding="utf-8"), config)
    return write_class_file(output_dir, class_name, instructions)


def run_source(
    source: str,
    inputs: Iterable[int] = (),
    vm_config: VMConfig = VMConfig(),
    config: CompilerConfig = CompilerConfig(),
) -> tuple[VMState, ExecutionStats]:
    """Compile *source* and execute it on the reference stack machine.

    Args:
        source: The C-minus program text.
        inputs: Values returned by successive ``getint()`` calls.
        vm_config: Execution limits.
        config: Compilation options.

    Returns:
        The final machine state (``output`` holds every ``putint`` value)
        and execution statistics.
    """
    instructions = compile_source(source, config)
    logger.info("Executing %d instructions", len(instructions))
    return execute(instructions, inputs, vm_config)


def instruction_stats(
    source: str, config: CompilerConfig = CompilerConfig()
) -> dict[str, int]:
    """Compile *source* and return mnemonic frequency counts."""
    return count_opcodes(compile_source(source, config))
