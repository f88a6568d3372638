"""
M3L core: lexer, parser, resolver and validator.
"""

from . import ir
from .compiler import compile_sources, compile_string, ensure_valid
from .config import CompileOptions
from .errors import CompilationError, M3LError, NoSourcesError
from .lexer import Token, TokenType, tokenize
from .parser import parse_sources, parse_string
from .resolver import resolve
from .validator import ValidationResult, validate

__all__ = [
    "ir",
    "compile_sources",
    "compile_string",
    "ensure_valid",
    "CompileOptions",
    "CompilationError",
    "M3LError",
    "NoSourcesError",
    "Token",
    "TokenType",
    "tokenize",
    "parse_sources",
    "parse_string",
    "resolve",
    "ValidationResult",
    "validate",
]
