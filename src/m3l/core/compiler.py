"""
End-to-end M3L compilation.

Runs lexer, parser, resolver and validator over a set of documents and
returns one AST with every diagnostic. Finding the documents is up to the
caller; this module only needs ``(source_id, text)`` pairs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from . import ir
from .config import CompileOptions
from .errors import NoSourcesError, make_compilation_error
from .parser import parse_sources
from .resolver import resolve
from .validator import validate

logger = logging.getLogger(__name__)


def compile_sources(
    sources: Iterable[tuple[str, str]], options: CompileOptions | None = None
) -> ir.M3LAST:
    """
    Compile M3L documents into a validated AST.

    The order of ``sources`` is significant: it decides which definition
    counts as the first one in duplicate-name diagnostics.

    Args:
        sources: (source_id, text) pairs
        options: Compile options (defaults: non-strict, no project metadata)

    Returns:
        Merged AST carrying resolution and validation diagnostics

    Raises:
        NoSourcesError: If ``sources`` is empty
    """
    options = options or CompileOptions()
    pairs = list(sources)
    if not pairs:
        raise NoSourcesError("No input files found")

    logger.debug("Compiling %d source(s), strict=%s", len(pairs), options.strict)
    ast = resolve(parse_sources(pairs), options.project)
    result = validate(ast, strict=options.strict)
    return ast.model_copy(update={"errors": result.errors, "warnings": result.warnings})


def compile_string(text: str, source_id: str = "inline", strict: bool = False) -> ir.M3LAST:
    """Compile a single document."""
    return compile_sources([(source_id, text)], CompileOptions(strict=strict))


def ensure_valid(ast: ir.M3LAST) -> ir.M3LAST:
    """
    Return ``ast`` unchanged if it has no errors.

    Raises:
        CompilationError: Listing every error diagnostic
    """
    if ast.errors:
        raise make_compilation_error(ast.errors)
    return ast
