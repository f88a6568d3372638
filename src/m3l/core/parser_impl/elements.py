"""
Element parsing for M3L.

Handles level-1 and level-2 headings, element descriptions (blockquotes and
plain text) and the attribute registry built from ``::attribute``
definitions.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from .. import ir
from ..lexer import ElementPayload, NamespacePayload, Token, TokenType
from ..scanner import parse_scalar, split_top_level, unquote
from .base import AttributeDraft

RANGE_DOTS = re.compile(r"^\s*(-?[\d.]+)\s*\.\.\s*(-?[\d.]+)\s*$")

MODEL_KINDS = {
    TokenType.MODEL: ir.ModelKind.MODEL,
    TokenType.INTERFACE: ir.ModelKind.INTERFACE,
    TokenType.VIEW: ir.ModelKind.VIEW,
}


def _append_text(existing: str | None, text: str) -> str:
    return f"{existing}\n{text}" if existing else text


def _parse_number(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


class ElementParserMixin:
    """
    Mixin providing element start/finish handling.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        state: Any
        source_id: Any
        location: Any
        current_model: Any
        build_attribute: Any

    def handle_namespace(self, token: Token) -> None:
        """Record ``# Namespace: x``; document titles are ignored."""
        payload: NamespacePayload = token.payload
        if payload.is_namespace and self.state.element is None and self.state.attr_def is None:
            self.state.namespace = payload.name

    def handle_element_start(self, token: Token) -> None:
        """Close the current element and open the one declared by ``token``."""
        self.finalize_element()
        payload: ElementPayload = token.payload
        state = self.state

        if token.type == TokenType.ATTRIBUTE_DEF:
            state.attr_def = AttributeDraft(
                payload=payload, line=token.line, description=payload.description
            )
            return

        if token.type == TokenType.ENUM:
            state.element = ir.EnumNode(
                name=payload.name,
                label=payload.label,
                source_id=self.source_id,
                line=token.line,
                inherits=list(payload.inherits),
                description=payload.description,
                location=self.location(token),
            )
            return

        state.element = ir.ModelNode(
            name=payload.name,
            label=payload.label,
            kind=MODEL_KINDS[token.type],
            source_id=self.source_id,
            line=token.line,
            inherits=list(payload.inherits),
            description=payload.description,
            attributes=[self.build_attribute(attr) for attr in payload.attributes],
            materialized=payload.materialized,
            location=self.location(token),
        )

    def finalize_element(self) -> None:
        """Emit the element being built, if any, and clear element scope."""
        state = self.state
        if state.attr_def is not None:
            state.attribute_registry.append(self.build_registry_entry(state.attr_def))

        element = state.element
        if isinstance(element, ir.EnumNode):
            state.enums.append(element)
        elif isinstance(element, ir.ModelNode):
            if element.kind == ir.ModelKind.INTERFACE:
                state.interfaces.append(element)
            elif element.kind == ir.ModelKind.VIEW:
                state.views.append(element)
            else:
                state.models.append(element)

        state.reset_element_scope()

    def handle_blockquote(self, token: Token) -> None:
        """
        Attach ``> text`` to the innermost open construct.

        Attribute definition first, then the last field, then the element.
        """
        text = token.payload.text
        if not text:
            return
        state = self.state
        if state.attr_def is not None:
            state.attr_def.description = _append_text(state.attr_def.description, text)
        elif state.last_field is not None:
            state.last_field.description = _append_text(state.last_field.description, text)
        elif state.element is not None:
            state.element.description = _append_text(state.element.description, text)

    def handle_text(self, token: Token) -> None:
        payload = token.payload
        if payload.import_path:
            self.state.imports.append(payload.import_path)
            return

        model = self.current_model
        if (
            model is not None
            and not model.fields
            and model.description is None
            and self.state.section is None
        ):
            model.description = payload.text

    # =========================================================================
    # Attribute registry
    # =========================================================================

    def build_registry_entry(self, draft: AttributeDraft) -> ir.AttributeRegistryEntry:
        """
        Build a registry entry from the ``key: value`` lines of a definition.

        Args:
            draft: Collected definition

        Returns:
            AttributeRegistryEntry with typed target, range and default
        """
        values = draft.values
        description = draft.description
        if description is None and "description" in values:
            description = unquote(values["description"])

        return ir.AttributeRegistryEntry(
            name=draft.payload.name,
            description=description,
            target=self._parse_target(values.get("target")),
            value_type=unquote(values.get("type", "boolean")),
            range=self._parse_range(values.get("range")),
            required=values.get("required", "").strip().lower() == "true",
            default_value=parse_scalar(values["default"]) if "default" in values else None,
            location=ir.SourceLocation(file=self.source_id, line=draft.line, column=1),
        )

    @staticmethod
    def _parse_target(raw: str | None) -> list[str]:
        if not raw:
            return ["field"]
        targets = [unquote(t) for t in split_top_level(raw.strip().strip("[]"))]
        return targets or ["field"]

    @staticmethod
    def _parse_range(raw: str | None) -> tuple[float, float] | None:
        """Parse ``[1, 5]``, ``1, 5`` or ``1..5`` into a pair of numbers."""
        if not raw:
            return None
        match = RANGE_DOTS.match(raw.strip().strip("[]"))
        parts = list(match.groups()) if match else split_top_level(raw.strip().strip("[]"))
        if len(parts) != 2:
            return None
        low, high = _parse_number(parts[0]), _parse_number(parts[1])
        if low is None or high is None:
            return None
        return low, high
