"""
Field types for the M3L IR.

A field line such as ``- total(Total): decimal(10,2)? = 0 @min(0) "Order total"``
becomes one FieldNode. Lookup, rollup and computed fields carry their parsed
sub-definition alongside the raw attributes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from .base import IRNode
from .location import SourceLocation

AttributeArg = bool | int | float | str


class FieldKind(str, Enum):
    """How a field obtains its value."""

    STORED = "stored"
    COMPUTED = "computed"
    LOOKUP = "lookup"
    ROLLUP = "rollup"


class DefaultValueType(str, Enum):
    LITERAL = "literal"
    EXPRESSION = "expression"


class FieldAttribute(IRNode):
    """
    An ``@name(args)`` attribute attached to a field, model or view.

    Attributes:
        name: Attribute name without the leading ``@``
        args: Typed arguments, ``None`` when the attribute had no parentheses
        cascade: Trailing ``!``, ``!!`` or ``?`` marker
        is_standard: Name is one of the built-in attributes
        is_registered: Name matches an ``::attribute`` registry entry
    """

    name: str
    args: list[AttributeArg] | None = None
    cascade: str | None = None
    is_standard: bool = False
    is_registered: bool = False


class ParsedFrameworkAttr(IRNode):
    name: str
    arguments: list[str] = Field(default_factory=list)


class FrameworkAttribute(IRNode):
    """An inline ```[Attr(args)]``` marker passed through for code generators."""

    content: str
    raw: str
    parsed: ParsedFrameworkAttr | None = None


class LookupDef(IRNode):
    """Dotted foreign-key path, e.g. ``customer_id.name``."""

    path: str


class RollupDef(IRNode):
    """
    Aggregation over a related child model.

    ``@rollup(OrderItem.order_id, sum(amount), where: "status = 'paid'")``
    yields target_model=OrderItem, fk_field=order_id, aggregate=sum,
    aggregated_field=amount.
    """

    target_model: str
    fk_field: str
    aggregate: str
    aggregated_field: str | None = None
    where: str | None = None


class ComputedDef(IRNode):
    """Opaque expression text; never parsed or evaluated."""

    expression: str
    platform: str | None = None


class EnumValue(IRNode):
    name: str
    description: str | None = None
    type: str | None = None
    value: Any = None


class FieldNode(IRNode):
    """
    A single field of a model, interface or view.

    Attributes:
        name: Field name
        label: Optional display label from ``name(Label)``
        type: Base type name (``string``, ``decimal``, ``Customer``...)
        generic_params: Parameters inside ``<...>``
        size_params: Parameters inside ``(...)`` after the type
        nullable: Container is nullable (``?`` after ``[]`` or on a scalar)
        is_array: Type ended in ``[]``
        array_item_nullable: Elements are nullable (``?`` before ``[]``)
        kind: stored, computed, lookup or rollup
        default_value: Default after ``=``, quotes removed
        default_value_type: literal or expression
        enum_values: Inline enum values from nested items
        sub_fields: Structured children of an ``object`` field
    """

    name: str
    label: str | None = None
    type: str | None = None
    generic_params: list[str] | None = None
    size_params: list[str] | None = None
    nullable: bool = False
    is_array: bool = False
    array_item_nullable: bool = False
    kind: FieldKind = FieldKind.STORED
    default_value: str | None = None
    default_value_type: DefaultValueType | None = None
    description: str | None = None
    attributes: list[FieldAttribute] = Field(default_factory=list)
    framework_attrs: list[FrameworkAttribute] | None = None
    lookup: LookupDef | None = None
    rollup: RollupDef | None = None
    computed: ComputedDef | None = None
    enum_values: list[EnumValue] | None = None
    sub_fields: list[FieldNode] | None = None
    location: SourceLocation

    def has_attribute(self, *names: str) -> bool:
        """Check whether any attribute carries one of the given names."""
        return any(attr.name in names for attr in self.attributes)
