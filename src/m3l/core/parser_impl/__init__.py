"""
M3L Parser Package.

The parser is built from mixins that each handle one kind of line, over a
BaseParser that owns the builder state and the dispatch loop.

The main exports are:
- Parser: The complete parser class
- parse_m3l: Convenience function to lex and parse one document

Usage:
    from m3l.core.parser_impl import parse_m3l

    parsed = parse_m3l(text, "models/user.m3l.md")
"""

from .. import ir
from ..lexer import tokenize
from .base import BaseParser, ParserState
from .elements import ElementParserMixin
from .fields import FieldParserMixin
from .nested import NestedItemParserMixin
from .sections import SectionParserMixin


class Parser(
    BaseParser,
    ElementParserMixin,
    SectionParserMixin,
    FieldParserMixin,
    NestedItemParserMixin,
):
    """
    Complete M3L Parser.

    This class composes all parser mixins:

    - ElementParserMixin: Headings, descriptions and the attribute registry
    - SectionParserMixin: Level-3 sections, directives and section items
    - FieldParserMixin: Fields, enum values and field kinds
    - NestedItemParserMixin: Indented items under fields, enums and entries
    """

    pass


def parse_m3l(text: str, source_id: str) -> ir.ParsedFile:
    """
    Parse one M3L document.

    Args:
        text: Document text
        source_id: Identifier used verbatim in locations and diagnostics

    Returns:
        ParsedFile with every element the document declares
    """
    tokens = tokenize(text, source_id)
    return Parser(tokens, source_id).parse()


__all__ = ["Parser", "ParserState", "parse_m3l"]
