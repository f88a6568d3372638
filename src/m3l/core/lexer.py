"""
Lexer for M3L documents.

Converts markdown text into exactly one token per source line so that
every later diagnostic keeps the original line number. Each token carries
a typed payload describing what was recognised on that line; the meaning
of list items nested under a field is left entirely to the parser.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from .catalogs import KIND_SECTIONS
from .scanner import (
    RawAttribute,
    TypeSpec,
    scan_attributes,
    scan_type_and_attrs,
    split_inline_comment,
    split_top_level,
    unescape,
)

logger = logging.getLogger(__name__)


class TokenType(Enum):
    """Token types in an M3L document."""

    # Headings
    NAMESPACE = "namespace"
    MODEL = "model"
    ENUM = "enum"
    INTERFACE = "interface"
    VIEW = "view"
    ATTRIBUTE_DEF = "attribute_def"
    SECTION = "section"

    # List items
    FIELD = "field"
    NESTED_ITEM = "nested_item"

    # Other lines
    BLOCKQUOTE = "blockquote"
    HORIZONTAL_RULE = "horizontal_rule"
    CODE_BLOCK = "code_block"
    TEXT = "text"
    BLANK = "blank"


# Token types that open a new element
ELEMENT_TOKENS = frozenset(
    {
        TokenType.MODEL,
        TokenType.ENUM,
        TokenType.INTERFACE,
        TokenType.VIEW,
        TokenType.ATTRIBUTE_DEF,
    }
)

# =============================================================================
# Line patterns
# =============================================================================

H1 = re.compile(r"^# (.+)$")
H2 = re.compile(r"^## (.+)$")
H3 = re.compile(r"^### (.+)$")
HORIZONTAL_RULE = re.compile(r"^-{3,}$")
BLOCKQUOTE = re.compile(r"^(\s*)>\s?(.*)$")
LIST_ITEM = re.compile(r"^(\s*)- (.+)$")
CODE_FENCE = re.compile(r"^```\s*([\w+-]*)")

NAMESPACE = re.compile(r"^Namespace:\s*(.+)$")
IMPORT = re.compile(r"""^@import\s+["'](.+?)["']\s*$""")

TYPE_INDICATOR = re.compile(r"^(@?[\w][\w.]*(?:\([^)]*\))?)\s*::(\w+)(.*)$")
MODEL_DEF = re.compile(r"^([\w][\w.]*(?:\([^)]*\))?)\s*(?::\s*(.+?))?(\s+@.+)?$")
TRAILING_DESCRIPTION = re.compile(r'^(.*?)\s*"((?:[^"\\]|\\.)*)"\s*$')
QUOTED_DESCRIPTION = re.compile(r'"((?:[^"\\]|\\.)*)"')
INDICATOR_INHERITS = re.compile(r'^:\s*(.+?)(?:\s+@|\s*"|\s*$)')
NAME_LABEL = re.compile(r"^([\w][\w.]*)\(([^)]*)\)$")

ENUM_VALUE = re.compile(r'^([\w]+)(?:\(([^)]*)\))?\s+"((?:[^"\\]|\\.)*)"$')
FIELD_NAME = re.compile(r"^([\w]+)(?:\(([^)]*)\))?\s*(?::\s*(.+))?$")
NESTED_KEY_VALUE = re.compile(r"^(\w+)\s*:\s*(.*)$")
FRAMEWORK_ATTR = re.compile(r"`\[([^\]]+)\]`")

ELEMENT_KINDS = {
    "enum": TokenType.ENUM,
    "interface": TokenType.INTERFACE,
    "view": TokenType.VIEW,
    "attribute": TokenType.ATTRIBUTE_DEF,
}

# =============================================================================
# Payloads
# =============================================================================


@dataclass
class CodeBlock:
    """Body of a fenced code block attached to the preceding field or section."""

    content: str
    language: str | None = None


@dataclass
class NamespacePayload:
    """Level-1 heading: a namespace declaration or a plain document title."""

    name: str
    is_namespace: bool = True


@dataclass
class ElementPayload:
    """Level-2 heading opening a model, enum, interface, view or attribute definition."""

    name: str
    label: str | None = None
    inherits: list[str] = field(default_factory=list)
    attributes: list[RawAttribute] = field(default_factory=list)
    description: str | None = None
    materialized: bool = False


@dataclass
class SectionPayload:
    """
    Level-3 heading.

    ``kind_context`` is set for the reserved headings that change the kind
    of the fields that follow (lookup, rollup or computed).
    """

    name: str
    kind_context: str | None = None
    code_block: CodeBlock | None = None


@dataclass
class FieldPayload(TypeSpec):
    """
    Top-level list item.

    Attributes:
        name: Field name (empty for directive lines)
        label: Label from ``name(Label)``
        raw_value: Everything after ``name:``, comments removed
        comment: Trailing ``# comment`` text
        framework_attrs: Contents of ```[...]``` markers
        is_directive: Line starts with ``@`` and declares no field
        code_block: Fenced block following the line
    """

    name: str = ""
    label: str | None = None
    raw_value: str | None = None
    comment: str | None = None
    framework_attrs: list[str] = field(default_factory=list)
    is_directive: bool = False
    code_block: CodeBlock | None = None


@dataclass
class NestedItemPayload:
    """Indented list item; ``key``/``value`` are set for ``key: value`` lines."""

    raw: str
    key: str | None = None
    value: str | None = None


@dataclass
class BlockquotePayload:
    text: str


@dataclass
class TextPayload:
    text: str
    import_path: str | None = None


Payload = (
    NamespacePayload
    | ElementPayload
    | SectionPayload
    | FieldPayload
    | NestedItemPayload
    | BlockquotePayload
    | TextPayload
    | None
)


@dataclass
class Token:
    """
    A single line of an M3L document.

    Attributes:
        type: Type of token
        raw: Original line text
        line: Line number (1-indexed)
        indent: Count of leading whitespace characters
        payload: Kind-specific data, None for blank lines, rules and code
    """

    type: TokenType
    raw: str
    line: int
    indent: int = 0
    payload: Payload = None

    def __repr__(self) -> str:
        return f"Token({self.type.value}, {self.raw!r}, {self.line})"


# =============================================================================
# Line-level helpers
# =============================================================================


def split_name_label(text: str) -> tuple[str, str | None]:
    """Split ``Name(Label)`` into its parts."""
    match = NAME_LABEL.match(text.strip())
    if match:
        return match.group(1), match.group(2).strip()
    return text.strip(), None


def parse_element_heading(content: str) -> tuple[TokenType, ElementPayload]:
    """
    Parse the text of a level-2 heading.

    ``Name ::kind`` selects enum, interface, view or attribute definition;
    anything else is a model header ``Name(Label) : A, B @attr "desc"``.
    Headings that match neither shape become a model named after the raw
    text.
    """
    match = TYPE_INDICATOR.match(content)
    if match:
        name_part, kind, rest = match.groups()
        token_type = ELEMENT_KINDS.get(kind.lower(), TokenType.MODEL)
        name, label = split_name_label(name_part)
        if token_type == TokenType.ATTRIBUTE_DEF:
            name = name.lstrip("@")
        payload = ElementPayload(name=name, label=label)

        rest = rest.strip()
        inherits = INDICATOR_INHERITS.match(rest)
        if inherits:
            payload.inherits = split_top_level(inherits.group(1))
        description = QUOTED_DESCRIPTION.search(rest)
        if description:
            payload.description = unescape(description.group(1))
        payload.attributes = scan_attributes(rest)
        if token_type == TokenType.VIEW:
            payload.materialized = any(a.name == "materialized" for a in payload.attributes)
        return token_type, payload

    description = None
    trailing = TRAILING_DESCRIPTION.match(content)
    if trailing and trailing.group(1):
        content, description = trailing.group(1), unescape(trailing.group(2))

    match = MODEL_DEF.match(content.strip())
    if not match:
        return TokenType.MODEL, ElementPayload(name=content.strip(), description=description)

    name_part, parents, attrs = match.groups()
    name, label = split_name_label(name_part)
    return TokenType.MODEL, ElementPayload(
        name=name,
        label=label,
        inherits=split_top_level(parents) if parents else [],
        attributes=scan_attributes(attrs) if attrs else [],
        description=description,
    )


def parse_section_heading(content: str) -> SectionPayload:
    name = content.strip()
    return SectionPayload(name=name, kind_context=KIND_SECTIONS.get(name.lower()))


def parse_field_line(content: str) -> FieldPayload:
    """
    Parse the text of a top-level list item (after ``- ``).

    Args:
        content: List item text

    Returns:
        FieldPayload; an unparseable line yields a payload holding only a name
    """
    text = content.strip()
    if text.startswith("@"):
        return FieldPayload(is_directive=True, raw_value=text, attributes=scan_attributes(text))

    framework_attrs = FRAMEWORK_ATTR.findall(text)
    if framework_attrs:
        text = FRAMEWORK_ATTR.sub("", text).strip()
    text, comment = split_inline_comment(text)

    match = ENUM_VALUE.match(text)
    if match:
        return FieldPayload(
            name=match.group(1),
            label=match.group(2),
            description=unescape(match.group(3)),
            framework_attrs=framework_attrs,
            comment=comment,
        )

    match = FIELD_NAME.match(text)
    if not match:
        return FieldPayload(name=text, framework_attrs=framework_attrs, comment=comment)

    name, label, rest = match.groups()
    payload = FieldPayload(
        name=name,
        label=label.strip() if label else None,
        framework_attrs=framework_attrs,
        comment=comment,
    )
    if rest:
        payload.raw_value = rest.strip()
        spec = scan_type_and_attrs(rest)
        for key, value in vars(spec).items():
            setattr(payload, key, value)
    return payload


def parse_nested_item(content: str) -> NestedItemPayload:
    text = content.strip()
    match = NESTED_KEY_VALUE.match(text)
    if not match:
        return NestedItemPayload(raw=text)
    value = match.group(2).strip()
    return NestedItemPayload(raw=text, key=match.group(1), value=value or None)


# =============================================================================
# Lexer
# =============================================================================


class Lexer:
    """
    Line-oriented lexer for M3L.

    Produces one token per input line, including blank lines and the lines
    of fenced code blocks.
    """

    def __init__(self, text: str, source_id: str):
        """
        Initialize lexer.

        Args:
            text: Source text to tokenize
            source_id: Identifier of the document (for logging)
        """
        self.text = text
        self.source_id = source_id
        self.tokens: list[Token] = []
        self._fence: CodeBlock | None = None
        self._fence_lines: list[str] = []
        self._fence_target: FieldPayload | SectionPayload | None = None

    def tokenize(self) -> list[Token]:
        """
        Tokenize the whole text.

        Returns:
            List of tokens, one per line
        """
        for index, raw in enumerate(self.text.split("\n")):
            line = raw.rstrip("\r")
            if self._fence is not None or CODE_FENCE.match(line.strip()):
                self.tokens.append(self._lex_code_line(line, index + 1))
            else:
                self.tokens.append(self._lex_line(line, index + 1))

        if self._fence is not None:
            self._close_fence()

        logger.debug("Tokenized %s: %d tokens", self.source_id, len(self.tokens))
        return self.tokens

    def _lex_line(self, line: str, line_no: int) -> Token:
        stripped = line.strip()
        indent = len(line) - len(line.lstrip())

        if not stripped:
            return Token(TokenType.BLANK, line, line_no, indent)

        if HORIZONTAL_RULE.match(stripped):
            return Token(TokenType.HORIZONTAL_RULE, line, line_no, indent)

        match = H3.match(stripped)
        if match:
            return Token(TokenType.SECTION, line, line_no, indent, parse_section_heading(match.group(1)))

        match = H2.match(stripped)
        if match:
            token_type, element = parse_element_heading(match.group(1).strip())
            return Token(token_type, line, line_no, indent, element)

        match = H1.match(stripped)
        if match:
            heading = match.group(1).strip()
            namespace = NAMESPACE.match(heading)
            if namespace:
                payload = NamespacePayload(name=namespace.group(1).strip())
            else:
                payload = NamespacePayload(name=heading, is_namespace=False)
            return Token(TokenType.NAMESPACE, line, line_no, indent, payload)

        match = BLOCKQUOTE.match(line)
        if match:
            return Token(TokenType.BLOCKQUOTE, line, line_no, indent, BlockquotePayload(match.group(2).strip()))

        match = LIST_ITEM.match(line)
        if match:
            if len(match.group(1)) >= 2:
                return Token(TokenType.NESTED_ITEM, line, line_no, indent, parse_nested_item(match.group(2)))
            return Token(TokenType.FIELD, line, line_no, indent, parse_field_line(match.group(2)))

        match = IMPORT.match(stripped)
        if match:
            return Token(TokenType.TEXT, line, line_no, indent, TextPayload(stripped, import_path=match.group(1)))

        return Token(TokenType.TEXT, line, line_no, indent, TextPayload(stripped))

    def _lex_code_line(self, line: str, line_no: int) -> Token:
        """Handle a line that opens, continues or closes a fenced code block."""
        stripped = line.strip()
        token = Token(TokenType.CODE_BLOCK, line, line_no, len(line) - len(line.lstrip()))

        if self._fence is None:
            match = CODE_FENCE.match(stripped)
            self._fence = CodeBlock(content="", language=match.group(1) if match and match.group(1) else None)
            self._fence_lines = []
            self._fence_target = self._find_fence_target()
        elif stripped.startswith("```"):
            self._close_fence()
        else:
            self._fence_lines.append(line)
        return token

    def _find_fence_target(self) -> FieldPayload | SectionPayload | None:
        for token in reversed(self.tokens):
            if token.type == TokenType.BLANK:
                continue
            if isinstance(token.payload, (FieldPayload, SectionPayload)):
                return token.payload
            return None
        return None

    def _close_fence(self) -> None:
        assert self._fence is not None
        self._fence.content = "\n".join(self._fence_lines)
        if self._fence_target is not None:
            self._fence_target.code_block = self._fence
        self._fence = None
        self._fence_lines = []
        self._fence_target = None


def tokenize(text: str, source_id: str) -> list[Token]:
    """
    Convenience function to tokenize M3L text.

    Args:
        text: Source text
        source_id: Document identifier

    Returns:
        List of tokens
    """
    lexer = Lexer(text, source_id)
    return lexer.tokenize()
