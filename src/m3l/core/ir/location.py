"""Source location tracking for IR nodes.

Records the source identifier, line, and column where an M3L construct was
defined so diagnostics can point back at the original document.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SourceLocation(BaseModel):
    """Source position where an M3L construct was defined.

    Attributes:
        file: Source identifier, used verbatim
        line: 1-indexed line number
        column: 1-indexed column number
    """

    file: str
    line: int
    column: int = Field(default=1, alias="col")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"
