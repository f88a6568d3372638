"""
Exception types for the M3L compiler frontend.

Malformed input never raises: the lexer and parser degrade to best-effort
nodes and the resolver and validator report diagnostics. Exceptions are
reserved for conditions the caller has to act on.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ir import Diagnostic


class M3LError(Exception):
    """Base exception for all M3L errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class NoSourcesError(M3LError):
    """Raised when the pipeline is started without any input documents."""

    pass


class CompilationError(M3LError):
    """
    Raised by ``ensure_valid`` when the compiled AST carries errors.

    The full list of error diagnostics is kept on ``diagnostics`` so callers
    can render them however they like.
    """

    def __init__(
        self,
        message: str,
        diagnostics: Sequence[Diagnostic] = (),
        context: ErrorContext | None = None,
    ):
        self.diagnostics = list(diagnostics)
        super().__init__(message, context)


@dataclass
class ErrorContext:
    """
    Source location attached to an error.

    Attributes:
        file: Source identifier
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional source line shown under the location
    """

    file: str
    line: int
    column: int = 1
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "models.m3l.md:10:1"
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.snippet:
            return f"{location}\n{self.line:4d} | {self.snippet}"
        return location


def make_compilation_error(diagnostics: Sequence[Diagnostic]) -> CompilationError:
    """
    Helper to create a CompilationError from error diagnostics.

    The first diagnostic provides the error context; the message lists
    every diagnostic on its own line.

    Args:
        diagnostics: Error diagnostics, in reporting order

    Returns:
        CompilationError with context attached when diagnostics are present
    """
    if not diagnostics:
        return CompilationError("Compilation failed")

    lines = [f"Compilation failed with {len(diagnostics)} error(s):"]
    lines.extend(f"  {d.format()}" for d in diagnostics)
    first = diagnostics[0]
    context = ErrorContext(file=first.file, line=first.line, column=first.col)
    return CompilationError("\n".join(lines), diagnostics, context)
