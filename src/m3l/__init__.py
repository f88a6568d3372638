"""
M3L - compiler frontend for the markdown-based M3L data-modeling language.

Turns ``.m3l.md`` documents into a resolved, validated AST for code
generators.
"""

from __future__ import annotations

from .core import ir
from .core.catalogs import AST_VERSION, PARSER_VERSION
from .core.compiler import compile_sources, compile_string, ensure_valid
from .core.config import CompileOptions
from .core.errors import CompilationError, M3LError, NoSourcesError
from .core.parser import parse_sources, parse_string
from .core.resolver import resolve
from .core.validator import validate

__version__ = PARSER_VERSION

__all__ = [
    "__version__",
    "AST_VERSION",
    "PARSER_VERSION",
    "ir",
    "compile_sources",
    "compile_string",
    "ensure_valid",
    "CompileOptions",
    "CompilationError",
    "M3LError",
    "NoSourcesError",
    "parse_sources",
    "parse_string",
    "resolve",
    "validate",
]
