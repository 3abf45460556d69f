"""Control-flow label allocation."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class LabelAllocator:
    """Monotonic counter producing unique label numbers for one compilation.

    Every structured control node draws exactly one number and derives all of
    its label names from it, so two nodes never share a suffix.
    """

    def __init__(self, start: int = 0):
        self._start = start
        self._counter = start

    @property
    def peek(self) -> int:
        return self._counter

    def next(self) -> int:
        n = self._counter
        self._counter += 1
        return n

    def allocate(self, *kinds: str) -> tuple[str, ...]:
        """Draw one number and return ``<kind>_<n>`` for each kind."""
        n = self.next()
        names = tuple(f"{kind}_{n}" for kind in kinds)
        logger.debug("Allocated labels %s", ", ".join(names))
        return names

    def reset(self, start: int | None = None):
        self._counter = self._start if start is None else start
