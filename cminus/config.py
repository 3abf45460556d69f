"""Compiler and reference-machine configuration (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class CompilerConfig:
    """Groups compilation options.

    ``lenient`` reproduces the historical degradations of the original tool
    (out-of-range literals pushed as zero, unknown or mis-called builtins
    emitting nothing) as logged warnings instead of errors. Structural
    violations are rejected either way.
    """

    lenient: bool = False


@dataclass(frozen=True)
class VMConfig:
    """Groups reference stack machine execution configuration."""

    max_steps: int = constants.DEFAULT_MAX_STEPS


@dataclass
class ExecutionStats:
    """Returned execution metrics from execute."""

    steps: int = 0
    completed: bool = False
