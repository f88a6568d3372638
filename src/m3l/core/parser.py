from collections.abc import Iterable

from . import ir
from .parser_impl import parse_m3l


def parse_string(text: str, source_id: str = "inline") -> ir.ParsedFile:
    """
    Parse M3L text into a ParsedFile.

    Never raises on malformed input: unrecognised lines degrade to
    best-effort nodes and all semantic checks are left to later stages.

    Args:
        text: Document text
        source_id: Identifier used verbatim in diagnostics

    Returns:
        ParsedFile for the document
    """
    return parse_m3l(text, source_id)


def parse_sources(sources: Iterable[tuple[str, str]]) -> list[ir.ParsedFile]:
    """
    Parse several documents, preserving their order.

    Args:
        sources: (source_id, text) pairs

    Returns:
        One ParsedFile per pair, in input order
    """
    return [parse_m3l(text, source_id) for source_id, text in sources]
