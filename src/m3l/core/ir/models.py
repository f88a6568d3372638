"""
Model, interface and view nodes for the M3L IR.

The three element kinds share one shape and are told apart by ``kind``.
Views additionally carry a Source definition and, when materialized, a
Refresh definition.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from .base import IRNode
from .fields import FieldAttribute, FieldNode
from .location import SourceLocation


class ModelKind(str, Enum):
    MODEL = "model"
    INTERFACE = "interface"
    VIEW = "view"


class Sections(IRNode):
    """
    Non-field content of an element.

    Entries are loosely typed dictionaries because their shape depends on
    the section that produced them; ``extra`` holds every section name the
    parser has no dedicated handling for.
    """

    indexes: list[dict[str, Any]] = Field(default_factory=list)
    relations: list[dict[str, Any]] = Field(default_factory=list)
    behaviors: list[dict[str, Any]] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    extra: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)


class JoinDef(IRNode):
    model: str
    on: str | None = None


class ViewSourceDef(IRNode):
    """
    Source block of a derived view.

    Attributes:
        from_: Primary source model (``from`` on the wire)
        where: Filter expression, kept as opaque text
        order_by: Ordering expression
        group_by: Grouping columns
        joins: Joined models with their join condition
        raw_sql: Body of a fenced code block under the Source heading
        language_hint: Info string of that code block
    """

    from_: str | None = Field(default=None, alias="from")
    where: str | None = None
    order_by: str | None = None
    group_by: list[str] | None = None
    joins: list[JoinDef] | None = None
    raw_sql: str | None = None
    language_hint: str | None = None


class RefreshDef(IRNode):
    strategy: str | None = None
    interval: str | None = None


class ModelNode(IRNode):
    """
    A model, interface or view.

    Attributes:
        name: Element name
        label: Optional display label from ``Name(Label)``
        kind: model, interface or view
        source_id: Identifier of the document that declared the element
        line: Line of the level-2 heading
        inherits: Parent names in declaration order
        attributes: Element-level attributes from the heading
        fields: Declared fields; after resolution, inherited fields first
        sections: Indexes, relations, behaviors, metadata and other sections
        materialized: View was declared ``@materialized``
        source_def: Source block of a view
        refresh: Refresh block of a materialized view
    """

    name: str
    label: str | None = None
    kind: ModelKind = ModelKind.MODEL
    source_id: str
    line: int
    inherits: list[str] = Field(default_factory=list)
    description: str | None = None
    attributes: list[FieldAttribute] = Field(default_factory=list)
    fields: list[FieldNode] = Field(default_factory=list)
    sections: Sections = Field(default_factory=Sections)
    materialized: bool = False
    source_def: ViewSourceDef | None = None
    refresh: RefreshDef | None = None
    location: SourceLocation

    def get_field(self, name: str) -> FieldNode | None:
        """Get field by name."""
        for field in self.fields:
            if field.name == name:
                return field
        return None
