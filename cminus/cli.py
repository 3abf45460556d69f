"""Command-line entry point: ``cminusc``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .api import build_ast
from .config import CompilerConfig, VMConfig
from .emitter import emit_program
from .errors import CompileError, VMError
from .formatter import derive_class_name, render_class_file, write_class_file
from .stats import count_opcodes
from .vm import execute
from . import constants

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cminusc",
        description="Compile a C-minus program to stack-machine assembly (.jasm)",
    )
    parser.add_argument("file", help="C-minus source file (.cminus / .c-)")
    parser.add_argument("--output-dir", "-o", default=".",
                        help="Directory for the .jasm file (default: current directory)")
    parser.add_argument("--stdout", action="store_true",
                        help="Print the assembly instead of writing a file")
    parser.add_argument("--lenient", action="store_true",
                        help="Degrade out-of-range literals and bad builtin calls "
                             "with a warning instead of failing")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Do not print the AST dump")
    parser.add_argument("--stats", action="store_true",
                        help="Print instruction frequency counts")
    parser.add_argument("--run", action="store_true",
                        help="Execute the program on the reference stack machine")
    parser.add_argument("--input", "-i", type=int, action="append", default=[],
                        help="Value for getint() (repeatable, used with --run)")
    parser.add_argument("--max-steps", "-n", type=int, default=constants.DEFAULT_MAX_STEPS,
                        help=f"Step limit for --run (default: {constants.DEFAULT_MAX_STEPS})")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log pipeline progress")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.file)
    config = CompilerConfig(lenient=args.lenient)
    class_name = derive_class_name(path)

    try:
        program = build_ast(path.read_text(encoding="utf-8"), config)
        instructions = emit_program(program)
        if not args.quiet:
            print(program.render())

        # A failed run must not leave an output file.
        state = None
        if args.run:
            state, stats = execute(
                instructions, args.input, VMConfig(max_steps=args.max_steps)
            )
            logger.debug("Final machine state: %s", json.dumps(state.to_dict()))
            if not stats.completed:
                print(f"error: stopped after {stats.steps} steps", file=sys.stderr)
                return 1

        if args.stdout:
            print(render_class_file(class_name, instructions), end="")
        else:
            write_class_file(args.output_dir, class_name, instructions)
        if args.stats:
            print(json.dumps(count_opcodes(instructions), indent=2))
        if state is not None:
            for value in state.output:
                print(value)
    except (CompileError, VMError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
