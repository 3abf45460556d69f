"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

TYPE_INT = "int"
TYPE_FLOAT = "float"
TYPE_TAGS: frozenset[str] = frozenset({TYPE_INT, TYPE_FLOAT})

ARITHMETIC_OPERATORS: frozenset[str] = frozenset({"+", "-", "*", "/"})
COMPARISON_OPERATORS: frozenset[str] = frozenset({"==", "!=", "<", "<=", ">", ">="})
ASSIGNMENT_OPERATOR = "="
NEGATIVE_SIGN = "-"

BUILTIN_PUTINT = "putint"
BUILTIN_GETINT = "getint"
BUILTIN_ARITY: dict[str, int] = {
    BUILTIN_PUTINT: 1,
    BUILTIN_GETINT: 0,
}

MIN_LITERAL = -1
MAX_LITERAL = 5

WHILE_START_LABEL = "while_start"
WHILE_END_LABEL = "while_end"
ELSE_LABEL = "else"
ENDIF_LABEL = "endif"
SKIP_LABEL = "skip"

# Synthetic wrapper that puts the program's block items in statement position
PARSER_LANGUAGE = "c"
PROGRAM_FUNCTION_NAME = "__cminus_program__"
PROGRAM_PROLOGUE = f"void {PROGRAM_FUNCTION_NAME}(void) {{\n"
PROGRAM_EPILOGUE = "\n}\n"
PROLOGUE_LINES = PROGRAM_PROLOGUE.count("\n")

SOURCE_EXTENSION_PATTERN = r"\.(cminus|c-)$"
OUTPUT_EXTENSION = ".jasm"
CLASS_DIRECTIVE = ".class"
MAIN_DIRECTIVE = ".main"
RETURN_TRAILER = "return"
INSTRUCTION_INDENT = "    "
RENDER_INDENT = "  "

DEFAULT_MAX_STEPS = 10_000
