"""Custom attribute definitions (``## @name ::attribute``)."""

from __future__ import annotations

from pydantic import Field

from .base import IRNode
from .location import SourceLocation


class AttributeRegistryEntry(IRNode):
    """
    A project-defined attribute.

    Attributes:
        name: Attribute name without the leading ``@``
        description: Blockquote or ``description:`` text
        target: Element kinds the attribute applies to (``field``, ``model``)
        value_type: Declared argument type, ``boolean`` when unspecified
        range: Inclusive numeric bounds
        required: Attribute must be present
        default_value: Typed default
    """

    name: str
    description: str | None = None
    target: list[str] = Field(default_factory=lambda: ["field"])
    value_type: str = "boolean"
    range: tuple[float, float] | None = None
    required: bool = False
    default_value: bool | int | float | str | None = None
    location: SourceLocation | None = None
