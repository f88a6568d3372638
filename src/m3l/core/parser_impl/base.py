"""
Base parser class for M3L.

Holds the builder state for one document and dispatches each token to the
handler provided by the parser mixins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .. import ir
from ..lexer import ELEMENT_TOKENS, Token, TokenType

if TYPE_CHECKING:
    from ..lexer import ElementPayload

logger = logging.getLogger(__name__)


@dataclass
class AttributeDraft:
    """An ``::attribute`` definition collected until its element closes."""

    payload: ElementPayload
    line: int
    description: str | None = None
    values: dict[str, str] = field(default_factory=dict)


@dataclass
class ParserState:
    """
    Mutable builder state for a single parse.

    Attributes:
        source_id: Identifier of the document being parsed
        namespace: Active ``# Namespace:`` value
        element: Model, interface, view or enum being built
        attr_def: Attribute definition being built
        section: Name of the active level-3 section
        kind_context: Implicit field kind set by a kind-context section
        last_field: Most recent top-level field, target of nested items
        anchors: Stack of (indent, object field) for nested sub-fields
        last_entry: Most recent index or relation entry
        source_fields_mode: The view Source block has switched to fields
    """

    source_id: str
    namespace: str | None = None
    element: ir.ModelNode | ir.EnumNode | None = None
    attr_def: AttributeDraft | None = None
    section: str | None = None
    kind_context: ir.FieldKind | None = None
    last_field: ir.FieldNode | None = None
    anchors: list[tuple[int, ir.FieldNode]] = field(default_factory=list)
    last_entry: dict[str, Any] | None = None
    source_fields_mode: bool = False

    models: list[ir.ModelNode] = field(default_factory=list)
    enums: list[ir.EnumNode] = field(default_factory=list)
    interfaces: list[ir.ModelNode] = field(default_factory=list)
    views: list[ir.ModelNode] = field(default_factory=list)
    attribute_registry: list[ir.AttributeRegistryEntry] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)

    def reset_element_scope(self) -> None:
        """Forget everything tied to the element that just closed."""
        self.element = None
        self.attr_def = None
        self.reset_section_scope()
        self.kind_context = None

    def reset_section_scope(self) -> None:
        self.section = None
        self.last_field = None
        self.anchors = []
        self.last_entry = None
        self.source_fields_mode = False


class BaseParser:
    """
    Base parser class with token dispatch utilities.

    The parser makes a single forward pass over the tokens; every handler
    reads and updates ``self.state``. A parser instance is used for exactly
    one document.
    """

    # Type stubs for methods provided by the parser mixins
    if TYPE_CHECKING:
        handle_namespace: Any
        handle_element_start: Any
        handle_section: Any
        handle_field: Any
        handle_nested_item: Any
        handle_blockquote: Any
        handle_text: Any
        finalize_element: Any

    def __init__(self, tokens: list[Token], source_id: str):
        """
        Initialize parser.

        Args:
            tokens: List of tokens from lexer
            source_id: Document identifier (used verbatim in locations)
        """
        self.tokens = tokens
        self.source_id = source_id
        self.state = ParserState(source_id=source_id)

    def _handler_for(self, token_type: TokenType) -> Callable[[Token], None] | None:
        if token_type in ELEMENT_TOKENS:
            return self.handle_element_start
        handlers: dict[TokenType, Callable[[Token], None]] = {
            TokenType.NAMESPACE: self.handle_namespace,
            TokenType.SECTION: self.handle_section,
            TokenType.FIELD: self.handle_field,
            TokenType.NESTED_ITEM: self.handle_nested_item,
            TokenType.BLOCKQUOTE: self.handle_blockquote,
            TokenType.TEXT: self.handle_text,
        }
        return handlers.get(token_type)

    def parse(self) -> ir.ParsedFile:
        """
        Parse the whole token stream.

        Returns:
            ParsedFile with every element declared in the document
        """
        for token in self.tokens:
            handler = self._handler_for(token.type)
            if handler is not None:
                handler(token)
        self.finalize_element()

        state = self.state
        logger.debug(
            "Parsed %s: %d models, %d enums, %d interfaces, %d views",
            self.source_id,
            len(state.models),
            len(state.enums),
            len(state.interfaces),
            len(state.views),
        )
        return ir.ParsedFile(
            source_id=self.source_id,
            namespace=state.namespace,
            models=state.models,
            enums=state.enums,
            interfaces=state.interfaces,
            views=state.views,
            attribute_registry=state.attribute_registry,
            imports=state.imports,
        )

    def location(self, token: Token) -> ir.SourceLocation:
        """Source location of a token's line."""
        return ir.SourceLocation(file=self.source_id, line=token.line, column=1)

    def loc_dict(self, token: Token) -> dict[str, Any]:
        """Location in the plain-dict form used by section entries."""
        return {"file": self.source_id, "line": token.line, "col": 1}

    @property
    def current_model(self) -> ir.ModelNode | None:
        """The element being built when it is a model, interface or view."""
        element = self.state.element
        return element if isinstance(element, ir.ModelNode) else None

    @property
    def current_enum(self) -> ir.EnumNode | None:
        element = self.state.element
        return element if isinstance(element, ir.EnumNode) else None
