"""
Field parsing for M3L.

Turns FIELD payloads into FieldNode, EnumValue and attribute-definition
entries, and derives lookup/rollup/computed sub-definitions from the raw
attribute argument strings.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from .. import ir
from ..catalogs import STANDARD_ATTRIBUTES
from ..lexer import CodeBlock, FieldPayload, Token
from ..scanner import RawAttribute, parse_scalar, split_top_level, unquote

FRAMEWORK_CALL = re.compile(r"^([A-Za-z_][\w.]*)(?:\((.+)\))?$", re.DOTALL)
ROLLUP_WHERE = re.compile(r"^where\s*:\s*(.+)$", re.DOTALL)
ROLLUP_AGGREGATE = re.compile(r"^(\w+)(?:\((\w+)\))?$")
PLATFORM = re.compile(r"""^platform\s*:\s*["']?([^"'\s]+)["']?$""")


def process_default_value(raw: str | None) -> tuple[str | None, ir.DefaultValueType | None]:
    """
    Strip quoting from a default and classify it.

    Backtick defaults and function calls such as ``now()`` are expressions;
    everything else is a literal.
    """
    if not raw:
        return None, None
    if raw.startswith("`"):
        return unquote(raw), ir.DefaultValueType.EXPRESSION
    if raw.startswith(('"', "'")):
        return unquote(raw), ir.DefaultValueType.LITERAL
    if "(" in raw:
        return raw, ir.DefaultValueType.EXPRESSION
    return raw, ir.DefaultValueType.LITERAL


def parse_framework_attr(content: str) -> ir.FrameworkAttribute:
    """Parse the inside of a ```[Name(args)]``` marker."""
    content = content.strip()
    parsed = None
    match = FRAMEWORK_CALL.match(content)
    if match:
        args = match.group(2)
        parsed = ir.ParsedFrameworkAttr(
            name=match.group(1),
            arguments=split_top_level(args) if args else [],
        )
    return ir.FrameworkAttribute(content=content, raw=f"`[{content}]`", parsed=parsed)


def parse_lookup(attr: RawAttribute) -> ir.LookupDef | None:
    if not attr.raw_args or not attr.raw_args.strip():
        return None
    return ir.LookupDef(path=unquote(attr.raw_args))


def parse_rollup(attr: RawAttribute) -> ir.RollupDef | None:
    """
    Parse ``@rollup(Target.fk, aggregate(field), where: "...")``.

    The aggregate is the second argument. An aggregate that is not of the
    form ``name`` or ``name(field)`` is kept verbatim; an omitted one is
    left empty.
    """
    parts = split_top_level(attr.raw_args or "")
    if not parts:
        return None

    target = unquote(parts[0])
    target_model, _, fk_field = target.partition(".")
    aggregate = ""
    aggregated_field = None
    where = None

    if len(parts) > 1:
        match = ROLLUP_AGGREGATE.match(parts[1])
        if match:
            aggregate, aggregated_field = match.group(1), match.group(2)
        else:
            aggregate = parts[1]

    for part in parts[2:]:
        match = ROLLUP_WHERE.match(part)
        if match:
            where = unquote(match.group(1))

    return ir.RollupDef(
        target_model=target_model,
        fk_field=fk_field,
        aggregate=aggregate,
        aggregated_field=aggregated_field,
        where=where,
    )


def parse_computed(attr: RawAttribute, code_block: CodeBlock | None) -> ir.ComputedDef | None:
    """
    Parse ``@computed("expr")`` or ``@computed_raw("expr", platform: "pg")``.

    Exactly one outer quote layer is removed from the expression. Without
    an argument the expression comes from a fenced code block under the
    field.
    """
    raw = (attr.raw_args or "").strip()
    platform = None

    if attr.name == "computed_raw":
        expression_parts = []
        for part in split_top_level(raw):
            match = PLATFORM.match(part)
            if match:
                platform = match.group(1)
            else:
                expression_parts.append(part)
        raw = expression_parts[0] if expression_parts else ""

    if raw:
        return ir.ComputedDef(expression=unquote(raw), platform=platform)
    if code_block is not None:
        return ir.ComputedDef(expression=code_block.content, platform=platform)
    return None


class FieldParserMixin:
    """
    Mixin providing field construction.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        state: Any
        location: Any
        current_model: Any
        current_enum: Any
        handle_directive: Any
        handle_section_item: Any

    def handle_field(self, token: Token) -> None:
        """Route a top-level list item according to the current context."""
        payload: FieldPayload = token.payload
        state = self.state

        if state.attr_def is not None:
            if payload.name and payload.raw_value is not None:
                state.attr_def.values[payload.name] = payload.raw_value
            return

        enum = self.current_enum
        if enum is not None:
            if not payload.is_directive and payload.name:
                enum.values.append(self.build_enum_value(payload))
            return

        model = self.current_model
        if model is None:
            return

        if payload.is_directive:
            self.handle_directive(token, model)
        elif state.section is not None:
            self.handle_section_item(token, model)
        else:
            self.add_field(model, token)

    def add_field(self, model: ir.ModelNode, token: Token) -> ir.FieldNode:
        """Append a field built from ``token`` and make it the nesting anchor."""
        node = self.build_field_node(token.payload, token, self.state.kind_context)
        model.fields.append(node)
        self.state.last_field = node
        self.state.anchors = [(token.indent, node)]
        return node

    def build_attribute(self, raw: RawAttribute) -> ir.FieldAttribute:
        return ir.FieldAttribute(
            name=raw.name,
            args=raw.args,
            cascade=raw.cascade,
            is_standard=raw.name in STANDARD_ATTRIBUTES,
        )

    def build_enum_value(self, payload: FieldPayload) -> ir.EnumValue:
        value_type = payload.type_name if payload.type_name != "enum" else None
        return ir.EnumValue(
            name=payload.name,
            description=payload.description or payload.comment,
            type=value_type,
            value=parse_scalar(payload.default_value) if payload.default_value else None,
        )

    def build_field_node(
        self,
        payload: FieldPayload,
        token: Token,
        kind_context: ir.FieldKind | None = None,
    ) -> ir.FieldNode:
        """
        Build a FieldNode from a parsed field line.

        Args:
            payload: Field payload from the lexer
            token: Token the field came from (for its location)
            kind_context: Kind implied by the enclosing kind-context section

        Returns:
            FieldNode with kind and sub-definitions filled in
        """
        default_value, default_type = process_default_value(payload.default_value)
        node = ir.FieldNode(
            name=payload.name,
            label=payload.label,
            type=payload.type_name,
            generic_params=payload.generic_params,
            size_params=payload.size_params,
            nullable=payload.nullable,
            is_array=payload.is_array,
            array_item_nullable=payload.array_item_nullable,
            default_value=default_value,
            default_value_type=default_type,
            description=payload.description or payload.comment,
            attributes=[self.build_attribute(attr) for attr in payload.attributes],
            framework_attrs=[parse_framework_attr(c) for c in payload.framework_attrs] or None,
            location=self.location(token),
        )
        self._apply_field_kind(node, payload, kind_context)
        return node

    def _apply_field_kind(
        self,
        node: ir.FieldNode,
        payload: FieldPayload,
        kind_context: ir.FieldKind | None,
    ) -> None:
        """Explicit @lookup/@rollup/@computed attributes win over the section kind."""
        by_name: dict[str, RawAttribute] = {}
        for attr in payload.attributes:
            by_name.setdefault(attr.name, attr)

        if "lookup" in by_name:
            node.kind = ir.FieldKind.LOOKUP
            node.lookup = parse_lookup(by_name["lookup"])
        elif "rollup" in by_name:
            node.kind = ir.FieldKind.ROLLUP
            node.rollup = parse_rollup(by_name["rollup"])
        elif "computed" in by_name or "computed_raw" in by_name:
            node.kind = ir.FieldKind.COMPUTED
            attr = by_name.get("computed") or by_name["computed_raw"]
            node.computed = parse_computed(attr, payload.code_block)
        elif kind_context is not None:
            node.kind = kind_context
