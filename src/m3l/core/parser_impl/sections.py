"""
Section parsing for M3L.

Handles level-3 headings, directive lines (``- @index(...)``) and the items
of named sections. Items of sections without dedicated handling are kept
under ``sections.extra`` and never become fields.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from .. import ir
from ..catalogs import SOURCE_DIRECTIVES
from ..lexer import FieldPayload, SectionPayload, Token
from ..scanner import parse_scalar, split_top_level, unquote

JOIN = re.compile(r"^(\S+)\s+on\s+(.+)$", re.IGNORECASE | re.DOTALL)


def _payload_value(payload: FieldPayload) -> str | None:
    if payload.raw_value is None:
        return None
    return unquote(payload.raw_value)


class SectionParserMixin:
    """
    Mixin providing section and directive handling.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        state: Any
        current_model: Any
        loc_dict: Any
        add_field: Any

    def handle_section(self, token: Token) -> None:
        """
        Switch the active section.

        Kind-context headings (Lookup, Rollup, Computed) set the implicit
        field kind instead of naming a section.
        """
        payload: SectionPayload = token.payload
        state = self.state
        if state.element is None:
            return

        state.reset_section_scope()
        if payload.kind_context is not None:
            state.kind_context = ir.FieldKind(payload.kind_context)
            return

        state.kind_context = None
        state.section = payload.name

        model = self.current_model
        if model is not None and model.kind == ir.ModelKind.VIEW and payload.name.lower() == "source":
            if model.source_def is None:
                model.source_def = ir.ViewSourceDef()
            if payload.code_block is not None:
                model.source_def.raw_sql = payload.code_block.content
                model.source_def.language_hint = payload.code_block.language

    def handle_directive(self, token: Token, model: ir.ModelNode) -> None:
        """
        Route ``- @name(args)`` lines by the first attribute name.

        index/unique go to indexes, relation to relations, behavior(s) to
        behaviors; anything else is stored under ``extra``.
        """
        payload: FieldPayload = token.payload
        if not payload.attributes:
            return

        attr = payload.attributes[0]
        entry: dict[str, Any] = {
            "type": "directive",
            "raw": payload.raw_value,
            "args": attr.args or [],
            "loc": self.loc_dict(token),
        }
        sections = model.sections
        if attr.name in ("index", "unique"):
            entry["unique"] = attr.name == "unique"
            sections.indexes.append(entry)
        elif attr.name == "relation":
            sections.relations.append(entry)
        elif attr.name in ("behavior", "behaviors"):
            sections.behaviors.append(entry)
        else:
            sections.extra.setdefault(attr.name, []).append(entry)

        self._set_entry_anchor(entry)

    def handle_section_item(self, token: Token, model: ir.ModelNode) -> None:
        """Handle a list item inside a named section."""
        payload: FieldPayload = token.payload
        section = self.state.section
        key = section.lower()
        is_view = model.kind == ir.ModelKind.VIEW

        if is_view and key == "source":
            self._handle_source_item(token, model)
            return
        if is_view and key == "refresh":
            self._handle_refresh_item(payload, model)
            self._set_entry_anchor(None)
            return

        sections = model.sections
        entry: dict[str, Any]
        if key == "indexes":
            entry = {"name": payload.name, "loc": self.loc_dict(token)}
            if payload.label:
                entry["label"] = payload.label
            sections.indexes.append(entry)
        elif key == "relations":
            entry = {"name": payload.name, "raw": token.raw.strip()[2:], "loc": self.loc_dict(token)}
            sections.relations.append(entry)
        elif key == "metadata":
            value = payload.raw_value
            sections.metadata[payload.name] = parse_scalar(value) if value else None
            self._set_entry_anchor(None)
            return
        elif key == "behaviors":
            entry = {"name": payload.name, "raw": payload.raw_value, "loc": self.loc_dict(token)}
            sections.behaviors.append(entry)
        else:
            entry = {
                "name": payload.name,
                "raw": token.raw.strip()[2:],
                "value": _payload_value(payload),
                "loc": self.loc_dict(token),
            }
            sections.extra.setdefault(section, []).append(entry)

        self._set_entry_anchor(entry)

    def _set_entry_anchor(self, entry: dict[str, Any] | None) -> None:
        """Make a section entry (not a field) the target of nested items."""
        self.state.last_field = None
        self.state.anchors = []
        self.state.last_entry = entry

    def _handle_source_item(self, token: Token, model: ir.ModelNode) -> None:
        """
        Handle an item of a view's Source block.

        Directive keys are read until the first other key; from then on the
        rest of the block is view fields.
        """
        payload: FieldPayload = token.payload
        state = self.state
        if model.source_def is None:
            model.source_def = ir.ViewSourceDef()
        source = model.source_def

        if state.source_fields_mode or payload.name not in SOURCE_DIRECTIVES:
            state.source_fields_mode = True
            self.add_field(model, token)
            return

        value = _payload_value(payload) or ""
        if payload.name == "from":
            source.from_ = value
        elif payload.name == "where":
            source.where = value
        elif payload.name == "order_by":
            source.order_by = value
        elif payload.name == "group_by":
            source.group_by = [unquote(col) for col in split_top_level(value.strip("[]"))]
        elif payload.name == "join":
            match = JOIN.match(value)
            join = ir.JoinDef(model=match.group(1), on=match.group(2).strip()) if match else ir.JoinDef(model=value)
            source.joins = [*(source.joins or []), join]
        self._set_entry_anchor(None)

    def _handle_refresh_item(self, payload: FieldPayload, model: ir.ModelNode) -> None:
        if model.refresh is None:
            model.refresh = ir.RefreshDef()
        if payload.name == "strategy":
            model.refresh.strategy = _payload_value(payload)
        elif payload.name == "interval":
            model.refresh.interval = _payload_value(payload)
