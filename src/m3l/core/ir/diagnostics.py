"""
Diagnostics produced by resolution and validation.

Diagnostic codes form a closed set; consumers match on ``code`` and never
on message text.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class DiagnosticCode(str, Enum):
    """Stable diagnostic codes."""

    # Errors
    ROLLUP_FK_MISSING_REFERENCE = "E001"
    LOOKUP_FK_MISSING_REFERENCE = "E002"
    VIEW_SOURCE_MISSING = "E004"
    DUPLICATE_NAME = "E005"
    DUPLICATE_FIELD = "E006"
    UNRESOLVED_PARENT = "E007"

    # Strict-mode warnings
    LINE_TOO_LONG = "W001"
    NESTING_TOO_DEEP = "W002"
    LOOKUP_CHAIN_TOO_LONG = "W004"

    @property
    def severity(self) -> Severity:
        return Severity.WARNING if self.value.startswith("W") else Severity.ERROR


class Diagnostic(BaseModel):
    """
    A single error or warning, immutable once created.

    Attributes:
        code: Diagnostic code
        severity: error or warning, derived from the code
        file: Source identifier
        line: 1-indexed line number
        col: 1-indexed column number
        message: Human-readable description
    """

    code: DiagnosticCode
    severity: Severity
    file: str
    line: int
    col: int = 1
    message: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def create(
        cls, code: DiagnosticCode, message: str, file: str, line: int, col: int = 1
    ) -> Diagnostic:
        """Build a diagnostic whose severity follows from its code."""
        return cls(
            code=code, severity=code.severity, file=file, line=line, col=col, message=message
        )

    def format(self) -> str:
        """Format as ``file:line:col: CODE message``."""
        return f"{self.file}:{self.line}:{self.col}: {self.code.value} {self.message}"
