"""
Nested item parsing for M3L.

Indented list items carry no meaning of their own; what they become
depends on what they are nested under: an enum, a field, or a section
entry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import ir
from ..catalogs import STANDARD_ATTRIBUTES
from ..lexer import NestedItemPayload, Token, parse_field_line
from ..scanner import is_quoted, parse_arg_value, parse_scalar, scan_type_and_attrs, unquote


def nested_enum_value(payload: NestedItemPayload) -> ir.EnumValue:
    """
    Build an enum value from ``- name``, ``- name "desc"``, ``- name: "desc"``
    or ``- name: value``.
    """
    if payload.key is None:
        parsed = parse_field_line(payload.raw)
        return ir.EnumValue(name=parsed.name, description=parsed.description)
    if payload.value is None:
        return ir.EnumValue(name=payload.key)
    if is_quoted(payload.value):
        return ir.EnumValue(name=payload.key, description=unquote(payload.value))
    return ir.EnumValue(name=payload.key, value=parse_scalar(payload.value))


class NestedItemParserMixin:
    """
    Mixin providing nested item handling.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        state: Any
        current_enum: Any
        build_field_node: Any

    def handle_nested_item(self, token: Token) -> None:
        payload: NestedItemPayload = token.payload
        state = self.state

        if state.attr_def is not None:
            if payload.key and payload.value is not None:
                state.attr_def.values[payload.key] = payload.value
            return

        enum = self.current_enum
        if enum is not None:
            enum.values.append(nested_enum_value(payload))
            return

        if state.last_field is not None:
            self._handle_field_child(token, payload)
        elif state.last_entry is not None and payload.key:
            state.last_entry[payload.key] = parse_scalar(payload.value) if payload.value else None

    def _anchor_for(self, indent: int) -> ir.FieldNode:
        """Innermost open field whose children may sit at ``indent``."""
        anchors = self.state.anchors
        while len(anchors) > 1 and anchors[-1][0] >= indent:
            anchors.pop()
        return anchors[-1][1]

    def _handle_field_child(self, token: Token, payload: NestedItemPayload) -> None:
        """
        Interpret an item nested under a field, in priority order.

        Inline enum values (after a ``values:`` marker, or under a field of
        type ``enum``), then sub-fields of an ``object`` field, then extended
        attributes such as ``type:`` or ``reference:``.
        """
        field = self._anchor_for(token.indent)
        key, value = payload.key, payload.value

        if key == "values" and value is None and field.type != "object":
            if field.enum_values is None:
                field.enum_values = []
            return

        if field.enum_values is not None:
            field.enum_values.append(nested_enum_value(payload))
            return

        if field.type == "enum" and (value is None or ":" not in value):
            field.enum_values = [nested_enum_value(payload)]
            return

        if field.type == "object" and key and value:
            sub_field = self.build_field_node(parse_field_line(payload.raw), token)
            if field.sub_fields is None:
                field.sub_fields = []
            field.sub_fields.append(sub_field)
            if sub_field.type == "object":
                self.state.anchors.append((token.indent, sub_field))
            return

        if key:
            self._apply_extended_attribute(field, key, value)

    def _apply_extended_attribute(self, field: ir.FieldNode, key: str, value: str | None) -> None:
        """Apply ``- key: value`` written under a field in extended format."""
        if key == "type":
            if not value:
                return
            spec = scan_type_and_attrs(value)
            if spec.type_name is None:
                return
            field.type = spec.type_name
            field.generic_params = spec.generic_params
            field.size_params = spec.size_params
            field.nullable = spec.nullable
            field.is_array = spec.is_array
            field.array_item_nullable = spec.array_item_nullable
        elif key == "description":
            field.description = unquote(value) if value else None
        elif key in ("reference", "on_delete"):
            field.attributes.append(
                ir.FieldAttribute(
                    name=key,
                    args=[unquote(value)] if value else None,
                    is_standard=True,
                )
            )
        else:
            field.attributes.append(
                ir.FieldAttribute(
                    name=key,
                    args=[parse_arg_value(value)] if value else None,
                    is_standard=key in STANDARD_ATTRIBUTES,
                )
            )
