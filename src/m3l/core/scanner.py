"""
Character-level scanning helpers for M3L field lines.

Everything here works on plain strings and knows nothing about tokens or
parser context. Quoted spans (double quotes, single quotes and backticks)
are opaque to every scanner: a ``)`` or ``,`` inside them never ends or
splits the enclosing construct.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

QUOTE_CHARS = "\"'`"
OPENING = {"(": ")", "[": "]", "{": "}"}
CLOSING = {")", "]", "}"}

TYPE_NAME = re.compile(r"[\w][\w.]*")
# (size)?[]? after the base and generics; group 2 sits before [] and group 4 after it
TYPE_SUFFIX = re.compile(r"(?:\(([^)]*)\))?(\?)?(\[\])?(\?)?")
ATTR_NAME = re.compile(r"[\w]+")
KEY_VALUE_ARG = re.compile(r"^(\w+)\s*:\s*(.+)$", re.DOTALL)
INTEGER = re.compile(r"^-?\d+$")
FLOAT = re.compile(r"^-?\d+\.\d+$")


@dataclass
class RawAttribute:
    """
    An ``@name(args)`` occurrence before any semantic interpretation.

    Attributes:
        name: Attribute name without ``@``
        raw_args: Text between the parentheses, ``None`` without parentheses
        args: Typed argument list derived from ``raw_args``
        cascade: ``!``, ``!!`` or ``?`` written right after the attribute
    """

    name: str
    raw_args: str | None = None
    args: list[bool | int | float | str] | None = None
    cascade: str | None = None


@dataclass
class TypeSpec:
    """Result of scanning the part of a field line after ``name:``."""

    type_name: str | None = None
    generic_params: list[str] | None = None
    size_params: list[str] | None = None
    nullable: bool = False
    is_array: bool = False
    array_item_nullable: bool = False
    default_value: str | None = None
    attributes: list[RawAttribute] = field(default_factory=list)
    description: str | None = None


# =============================================================================
# Quotes and brackets
# =============================================================================


def find_closing_quote(text: str, start: int) -> int:
    """
    Find the index of the quote closing the one at ``start``.

    Backslash escapes are honoured. Returns -1 when the quote is never
    closed.
    """
    quote = text[start]
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and quote != "`":
            i += 2
            continue
        if ch == quote:
            return i
        i += 1
    return -1


def find_balanced_paren(text: str, start: int, opening: str = "(", closing: str = ")") -> int:
    """
    Find the bracket matching the ``opening`` one at ``start``.

    Quoted spans are skipped as a whole; a quote that never closes (an
    apostrophe in ``Bob's``) is an ordinary character. Returns -1 if the
    bracket is never balanced.
    """
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch in QUOTE_CHARS:
            end = find_closing_quote(text, i)
            if end != -1:
                i = end + 1
                continue
        if ch == opening:
            depth += 1
        elif ch == closing:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def split_top_level(text: str, separator: str = ",", angle_brackets: bool = False) -> list[str]:
    """
    Split on ``separator`` outside brackets and quoted spans.

    Parts are stripped and empty parts dropped, so ``"a, b(c, d), 'e, f'"``
    gives ``["a", "b(c, d)", "'e, f'"]``. With ``angle_brackets`` the text
    is a generic parameter list and ``<...>`` nests as well.
    """
    opening = {**OPENING, "<": ">"} if angle_brackets else OPENING
    closing = CLOSING | {">"} if angle_brackets else CLOSING
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in QUOTE_CHARS:
            end = find_closing_quote(text, i)
            end = len(text) - 1 if end == -1 else end
            current.append(text[i : end + 1])
            i = end + 1
            continue
        if ch in opening:
            depth += 1
        elif ch in closing:
            depth = max(depth - 1, 0)
        elif ch == separator and depth == 0:
            parts.append("".join(current))
            current = []
            i += 1
            continue
        current.append(ch)
        i += 1
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def is_quoted(text: str) -> bool:
    """True when ``text`` is one complete quoted span."""
    if len(text) < 2 or text[0] not in QUOTE_CHARS:
        return False
    return find_closing_quote(text, 0) == len(text) - 1


def unescape(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text)


def unquote(text: str) -> str:
    """
    Strip exactly one layer of surrounding quotes.

    Only a single quoted span covering the whole text is unwrapped;
    ``'"a" + "b"'`` is returned unchanged.
    """
    text = text.strip()
    if not is_quoted(text):
        return text
    inner = text[1:-1]
    return inner if text[0] == "`" else unescape(inner)


def split_inline_comment(text: str) -> tuple[str, str | None]:
    """
    Separate a trailing `` # comment`` that sits outside quoted spans.

    Returns:
        Tuple of (text without the comment, comment or None)
    """
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in QUOTE_CHARS:
            end = find_closing_quote(text, i)
            if end != -1:
                i = end + 1
                continue
        if (
            ch == "#"
            and i > 0
            and text[i - 1].isspace()
            and i + 1 < len(text)
            and text[i + 1].isspace()
        ):
            comment = text[i + 1 :].strip()
            return text[:i].rstrip(), comment or None
        i += 1
    return text, None


# =============================================================================
# Attribute arguments
# =============================================================================


def parse_arg_value(text: str) -> bool | int | float | str:
    """Convert one attribute argument to a typed value."""
    text = text.strip()
    if text.startswith("`"):
        return text
    match = KEY_VALUE_ARG.match(text)
    if match and not is_quoted(text):
        return f"{match.group(1)}: {unquote(match.group(2))}"
    return parse_scalar(text)


def parse_scalar(text: str) -> bool | int | float | str:
    """
    Type a scalar written in M3L source.

    Quoted text is a string, ``true``/``false`` are booleans and numeric
    literals become int or float; anything else stays a string.
    """
    text = text.strip()
    if is_quoted(text):
        return unquote(text)
    if text == "true":
        return True
    if text == "false":
        return False
    if INTEGER.match(text):
        return int(text)
    if FLOAT.match(text):
        return float(text)
    return text


def parse_attr_args(raw_args: str | None) -> list[bool | int | float | str] | None:
    if raw_args is None:
        return None
    return [parse_arg_value(part) for part in split_top_level(raw_args)]


def read_attribute(text: str, pos: int) -> tuple[RawAttribute | None, int]:
    """
    Read ``@name(args)`` starting at the ``@`` at ``pos``.

    Returns:
        Tuple of (attribute or None if no name follows, position after it)
    """
    match = ATTR_NAME.match(text, pos + 1)
    if not match:
        return None, pos + 1
    attr = RawAttribute(name=match.group(0))
    pos = match.end()
    if pos < len(text) and text[pos] == "(":
        close = find_balanced_paren(text, pos)
        if close == -1:
            close = len(text)
        attr.raw_args = text[pos + 1 : close]
        attr.args = parse_attr_args(attr.raw_args)
        pos = close + 1
    for marker in ("!!", "!", "?"):
        if text.startswith(marker, pos):
            attr.cascade = marker
            pos += len(marker)
            break
    return attr, pos


def scan_attributes(text: str) -> list[RawAttribute]:
    """Collect every ``@name(args)`` in ``text``, skipping quoted spans."""
    attributes: list[RawAttribute] = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch in QUOTE_CHARS:
            end = find_closing_quote(text, pos)
            pos = pos + 1 if end == -1 else end + 1
        elif ch == "@":
            attr, pos = read_attribute(text, pos)
            if attr:
                attributes.append(attr)
        else:
            pos += 1
    return attributes


# =============================================================================
# Type and attribute scanning
# =============================================================================


def _params(text: str | None) -> list[str] | None:
    if text is None:
        return None
    return split_top_level(text)


def _read_default(text: str, pos: int) -> tuple[str, int]:
    """Read a default value starting at ``pos`` (after ``=`` and whitespace)."""
    if pos >= len(text):
        return "", pos
    if text[pos] in QUOTE_CHARS:
        end = find_closing_quote(text, pos)
        end = len(text) - 1 if end == -1 else end
        return text[pos : end + 1], end + 1

    start = pos
    while pos < len(text):
        ch = text[pos]
        if ch == "(":
            close = find_balanced_paren(text, pos)
            pos = len(text) if close == -1 else close + 1
            continue
        if ch.isspace() or ch in "@" + QUOTE_CHARS:
            break
        pos += 1
    return text[start:pos], pos


def scan_type_and_attrs(text: str) -> TypeSpec:
    """
    Scan the remainder of a field line after ``name:``.

    Applied in order: a whole-line quoted description, the type token, an
    optional ``= default``, attributes with cascade markers, and a trailing
    quoted description.

    Args:
        text: Remainder of the line, comments and framework markers removed

    Returns:
        TypeSpec with whatever could be recognised
    """
    spec = TypeSpec()
    text = text.strip()
    if not text:
        return spec

    if text[0] == '"' and is_quoted(text):
        spec.description = unquote(text)
        return spec

    pos = 0
    match = TYPE_NAME.match(text)
    if match:
        spec.type_name = match.group(0)
        pos = match.end()
        if text.startswith("<", pos):
            close = find_balanced_paren(text, pos, "<", ">")
            if close != -1:
                spec.generic_params = split_top_level(text[pos + 1 : close], angle_brackets=True)
                pos = close + 1
        match = TYPE_SUFFIX.match(text, pos)
        size, before_array, array, after_array = match.groups()
        spec.size_params = _params(size)
        if array:
            spec.is_array = True
            spec.array_item_nullable = before_array is not None
            spec.nullable = after_array is not None
        else:
            spec.nullable = before_array is not None or after_array is not None
        pos = match.end()

    while pos < len(text):
        ch = text[pos]
        if ch.isspace():
            pos += 1
        elif ch == "=" and spec.default_value is None:
            pos += 1
            while pos < len(text) and text[pos].isspace():
                pos += 1
            spec.default_value, pos = _read_default(text, pos)
        elif ch == "@":
            attr, pos = read_attribute(text, pos)
            if attr:
                spec.attributes.append(attr)
        elif ch in "!?" and spec.attributes:
            marker = "!!" if text.startswith("!!", pos) else ch
            spec.attributes[-1].cascade = marker
            pos += len(marker)
        elif ch == '"':
            end = find_closing_quote(text, pos)
            end = len(text) if end == -1 else end
            spec.description = unescape(text[pos + 1 : end])
            pos = end + 1
        else:
            pos += 1

    return spec
