"""Compiler and reference-machine error types."""

from __future__ import annotations

from .ir import NO_SOURCE_LOCATION, SourceLocation
from . import constants


class CompileError(Exception):
    """Base class for every error raised before any output is produced."""

    def __init__(self, message: str, location: SourceLocation = NO_SOURCE_LOCATION):
        self.message = message
        self.location = location
        if location.is_unknown():
            super().__init__(message)
        else:
            super().__init__(f"{location}: {message}")


class ParseError(CompileError):
    """The external parser rejected the source text."""


class StructuralError(CompileError):
    """The parse tree cannot be represented as a well-formed AST."""


class LiteralRangeError(CompileError):
    """A numeric literal has no dedicated push-constant instruction."""

    def __init__(self, literal: str, location: SourceLocation = NO_SOURCE_LOCATION):
        self.literal = literal
        super().__init__(
            f"literal {literal} is outside the supported range "
            f"[{constants.MIN_LITERAL}, {constants.MAX_LITERAL}]",
            location,
        )


class BuiltinCallError(CompileError):
    """Call to an unknown function, or a builtin with the wrong argument count."""

    def __init__(
        self,
        name: str,
        message: str,
        location: SourceLocation = NO_SOURCE_LOCATION,
    ):
        self.name = name
        super().__init__(f"call to '{name}': {message}", location)


class VMError(Exception):
    """Runtime fault of the reference stack machine."""
