"""Tree-Sitter Parsing Layer."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .errors import ParseError
from .ir import SourceLocation
from . import constants

logger = logging.getLogger(__name__)


class ParserFactory(ABC):
    """Abstract factory for obtaining a language parser."""

    @abstractmethod
    def get_parser(self, language: str): ...


class TreeSitterParserFactory(ParserFactory):
    """Concrete factory that delegates to tree-sitter-language-pack."""

    def get_parser(self, language: str):
        import tree_sitter_language_pack as tslp

        return tslp.get_parser(language)


@dataclass(frozen=True)
class ParsedProgram:
    """A parse tree together with the exact bytes it was parsed from."""

    tree: object
    source: bytes


def source_location(node) -> SourceLocation:
    """Map a tree-sitter node back onto the user's (unwrapped) source."""
    s, e = node.start_point, node.end_point
    return SourceLocation(
        start_line=max(s[0] + 1 - constants.PROLOGUE_LINES, 1),
        start_col=s[1],
        end_line=max(e[0] + 1 - constants.PROLOGUE_LINES, 1),
        end_col=e[1],
    )


def _first_error(node) -> Optional[object]:
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    return next(
        (
            found
            for child in node.children
            if (found := _first_error(child)) is not None
        ),
        None,
    )


class Parser:
    """Thin wrapper around a parser factory.

    A C-minus program is a bare sequence of block items. It is handed to the
    C grammar as the body of one synthetic function so that every item is
    parsed in statement position.
    """

    def __init__(self, parser_factory: ParserFactory):
        self._factory = parser_factory

    def parse(self, source: str) -> ParsedProgram:
        parser = self._factory.get_parser(constants.PARSER_LANGUAGE)
        wrapped = (
            constants.PROGRAM_PROLOGUE + source + constants.PROGRAM_EPILOGUE
        ).encode("utf-8")
        tree = parser.parse(wrapped)
        error = _first_error(tree.root_node)
        if error is not None:
            loc = source_location(error)
            if error.is_missing:
                raise ParseError(f"missing '{error.type}'", loc)
            raise ParseError("syntax error", loc)
        logger.debug("Parsed %d bytes of source", len(source))
        return ParsedProgram(tree=tree, source=wrapped)
