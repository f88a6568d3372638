"""Enum nodes for the M3L IR."""

from __future__ import annotations

from pydantic import Field

from .base import IRNode
from .fields import EnumValue
from .location import SourceLocation


class EnumNode(IRNode):
    """
    A standalone ``## Name ::enum`` declaration.

    Attributes:
        name: Enum name
        label: Optional display label
        source_id: Identifier of the declaring document
        line: Line of the heading
        inherits: Parent enums named after ``::enum :``
        description: Heading or blockquote description
        values: Declared values in order
    """

    name: str
    label: str | None = None
    source_id: str
    line: int
    inherits: list[str] = Field(default_factory=list)
    description: str | None = None
    values: list[EnumValue] = Field(default_factory=list)
    location: SourceLocation
