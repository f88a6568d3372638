"""
Tests for the M3L lexer and its field-line scanner.
"""

import typing

import pytest

from m3l.core.lexer import (
    ElementPayload,
    FieldPayload,
    NestedItemPayload,
    Payload,
    SectionPayload,
    TokenType,
    parse_field_line,
    tokenize,
)
from m3l.core.scanner import (
    find_balanced_paren,
    find_closing_quote,
    split_inline_comment,
    split_top_level,
    unquote,
)

# =============================================================================
# Helpers
# =============================================================================


def lex_one(line: str):
    """Tokenize a single line and return its token."""
    tokens = tokenize(line, "test.m3l.md")
    assert len(tokens) == 1
    return tokens[0]


# =============================================================================
# Line mapping
# =============================================================================


class TestLineMapping:
    """One token per input line, always."""

    def test_one_token_per_line(self) -> None:
        text = "## User\n\n- name: string\n  - description: \"x\"\n> note\n"
        tokens = tokenize(text, "user.m3l.md")

        assert len(tokens) == text.count("\n") + 1
        assert [t.line for t in tokens] == list(range(1, len(tokens) + 1))

    def test_empty_text_yields_single_blank(self) -> None:
        tokens = tokenize("", "empty.m3l.md")

        assert len(tokens) == 1
        assert tokens[0].type == TokenType.BLANK

    def test_crlf_line_endings(self) -> None:
        tokens = tokenize("## User\r\n- name: string\r\n", "crlf.m3l.md")

        assert tokens[0].type == TokenType.MODEL
        assert tokens[1].payload.type_name == "string"
        assert len(tokens) == 3

    def test_code_block_lines_are_tokens(self) -> None:
        text = "- total: decimal @computed\n```sql\nprice * qty\n```\n- other: string"
        tokens = tokenize(text, "code.m3l.md")

        assert [t.type for t in tokens] == [
            TokenType.FIELD,
            TokenType.CODE_BLOCK,
            TokenType.CODE_BLOCK,
            TokenType.CODE_BLOCK,
            TokenType.FIELD,
        ]


# =============================================================================
# Classification
# =============================================================================


class TestClassification:
    """Structural classification of single lines."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("", TokenType.BLANK),
            ("   ", TokenType.BLANK),
            ("---", TokenType.HORIZONTAL_RULE),
            ("-----", TokenType.HORIZONTAL_RULE),
            ("### Indexes", TokenType.SECTION),
            ("## User", TokenType.MODEL),
            ("## Status ::enum", TokenType.ENUM),
            ("## Base ::interface", TokenType.INTERFACE),
            ("## Active ::view", TokenType.VIEW),
            ("## @audit ::attribute", TokenType.ATTRIBUTE_DEF),
            ("# Namespace: shop", TokenType.NAMESPACE),
            ("> A description", TokenType.BLOCKQUOTE),
            ("- name: string", TokenType.FIELD),
            ("  - key: value", TokenType.NESTED_ITEM),
            ("Plain prose.", TokenType.TEXT),
        ],
    )
    def test_line_kinds(self, line: str, expected: TokenType) -> None:
        assert lex_one(line).type == expected

    def test_namespace_declaration(self) -> None:
        token = lex_one("# Namespace: shop.orders")

        assert token.payload.name == "shop.orders"
        assert token.payload.is_namespace is True

    def test_level_one_title_is_not_namespace(self) -> None:
        token = lex_one("# Shop Domain")

        assert token.type == TokenType.NAMESPACE
        assert token.payload.is_namespace is False

    def test_import_directive(self) -> None:
        token = lex_one('@import "common/base.m3l.md"')

        assert token.type == TokenType.TEXT
        assert token.payload.import_path == "common/base.m3l.md"

    def test_nested_item_key_value(self) -> None:
        token = lex_one("    - reference: Customer")

        assert isinstance(token.payload, NestedItemPayload)
        assert token.indent == 4
        assert token.payload.key == "reference"
        assert token.payload.value == "Customer"

    def test_nested_item_marker_without_value(self) -> None:
        token = lex_one("  - values:")

        assert token.payload.key == "values"
        assert token.payload.value is None

    def test_nested_item_bare(self) -> None:
        token = lex_one('  - ACTIVE "Active"')

        assert token.payload.key is None
        assert token.payload.raw == 'ACTIVE "Active"'

    def test_indent_one_is_still_a_field(self) -> None:
        assert lex_one(" - name: string").type == TokenType.FIELD

    def test_every_payload_class_is_a_payload_variant(self) -> None:
        token = lex_one("- name: string")

        assert isinstance(token.payload, Payload)
        assert set(typing.get_args(Payload)) >= {FieldPayload, ElementPayload, type(None)}


# =============================================================================
# Headings
# =============================================================================


class TestHeadings:
    """Level-2 and level-3 heading sub-parsing."""

    def test_model_header(self) -> None:
        token = lex_one("## Order(Customer Order) : Base, Auditable @table(orders)")
        payload = token.payload

        assert isinstance(payload, ElementPayload)
        assert payload.name == "Order"
        assert payload.label == "Customer Order"
        assert payload.inherits == ["Base", "Auditable"]
        assert [a.name for a in payload.attributes] == ["table"]
        assert payload.attributes[0].args == ["orders"]

    def test_model_header_with_description(self) -> None:
        payload = lex_one('## User : Person "A registered user"').payload

        assert payload.name == "User"
        assert payload.inherits == ["Person"]
        assert payload.description == "A registered user"

    def test_unparseable_model_header_falls_back_to_raw_text(self) -> None:
        token = lex_one("## My Model")

        assert token.type == TokenType.MODEL
        assert token.payload.name == "My Model"
        assert token.payload.inherits == []

    def test_materialized_view(self) -> None:
        payload = lex_one('## Stats ::view @materialized "Daily stats"').payload

        assert payload.materialized is True
        assert payload.description == "Daily stats"

    def test_plain_view_is_not_materialized(self) -> None:
        assert lex_one("## Stats ::view").payload.materialized is False

    def test_interface_with_parents(self) -> None:
        payload = lex_one("## Auditable ::interface : Timestampable").payload

        assert payload.inherits == ["Timestampable"]

    def test_attribute_definition_name_drops_at(self) -> None:
        assert lex_one("## @audit ::attribute").payload.name == "audit"

    @pytest.mark.parametrize(
        "heading,kind",
        [
            ("### Lookup", "lookup"),
            ("### Rollup", "rollup"),
            ("### Computed", "computed"),
            ("### Computed from Rollup", "computed"),
            ("### Indexes", None),
            ("### Source", None),
        ],
    )
    def test_kind_context_sections(self, heading: str, kind: str | None) -> None:
        payload = lex_one(heading).payload

        assert isinstance(payload, SectionPayload)
        assert payload.kind_context == kind


# =============================================================================
# Field lines
# =============================================================================


class TestFieldLine:
    """Field-line and type/attribute scanning."""

    def test_full_field_line(self) -> None:
        payload = parse_field_line('total(Total): decimal(10,2)? = 0 @min(0) "Order total"')

        assert isinstance(payload, FieldPayload)
        assert payload.name == "total"
        assert payload.label == "Total"
        assert payload.type_name == "decimal"
        assert payload.size_params == ["10", "2"]
        assert payload.nullable is True
        assert payload.default_value == "0"
        assert [a.name for a in payload.attributes] == ["min"]
        assert payload.attributes[0].args == [0]
        assert payload.description == "Order total"

    @pytest.mark.parametrize(
        "line,nullable,item_nullable,is_array",
        [
            ("tags: string?[]", False, True, True),
            ("tags: string[]?", True, False, True),
            ("tags: string?[]?", True, True, True),
            ("tags: string[]", False, False, True),
            ("tag: string?", True, False, False),
        ],
    )
    def test_nullable_markers(
        self, line: str, nullable: bool, item_nullable: bool, is_array: bool
    ) -> None:
        payload = parse_field_line(line)

        assert payload.nullable is nullable
        assert payload.array_item_nullable is item_nullable
        assert payload.is_array is is_array

    def test_generic_params(self) -> None:
        payload = parse_field_line("scores: map<string, integer>")

        assert payload.type_name == "map"
        assert payload.generic_params == ["string", "integer"]

    def test_nested_generic_params(self) -> None:
        payload = parse_field_line("scores: map<string, list<int>>?")

        assert payload.type_name == "map"
        assert payload.generic_params == ["string", "list<int>"]
        assert payload.nullable is True
        assert payload.is_array is False

    def test_function_call_default(self) -> None:
        payload = parse_field_line("created_at: timestamp = now() @immutable")

        assert payload.default_value == "now()"
        assert [a.name for a in payload.attributes] == ["immutable"]

    def test_quoted_default_keeps_quotes(self) -> None:
        payload = parse_field_line('status: string = "draft"')

        assert payload.default_value == '"draft"'

    def test_single_quoted_default(self) -> None:
        payload = parse_field_line("status: string = 'draft' @required")

        assert payload.default_value == "'draft'"
        assert [a.name for a in payload.attributes] == ["required"]

    def test_backtick_default(self) -> None:
        payload = parse_field_line("expires_at: timestamp = `now() + interval '1 day'`")

        assert payload.default_value == "`now() + interval '1 day'`"

    @pytest.mark.parametrize("marker", ["!", "!!", "?"])
    def test_cascade_marker_attaches_to_previous_attribute(self, marker: str) -> None:
        payload = parse_field_line(f"customer_id: identifier @reference(Customer){marker} @required")

        assert [a.name for a in payload.attributes] == ["reference", "required"]
        assert payload.attributes[0].cascade == marker
        assert payload.attributes[1].cascade is None

    def test_whole_line_quoted_description(self) -> None:
        payload = parse_field_line('status: "Current status"')

        assert payload.type_name is None
        assert payload.description == "Current status"

    def test_inline_comment_is_stripped(self) -> None:
        payload = parse_field_line("name: string @required # shown on invoices")

        assert payload.raw_value == "string @required"
        assert payload.comment == "shown on invoices"
        assert payload.type_name == "string"

    def test_hash_inside_quotes_is_not_a_comment(self) -> None:
        payload = parse_field_line('code: string "Issue # number"')

        assert payload.comment is None
        assert payload.description == "Issue # number"

    def test_apostrophe_in_attribute_args_before_comment(self) -> None:
        payload = parse_field_line("nick: string @label(Bob's) # the nickname")

        assert payload.type_name == "string"
        assert [a.name for a in payload.attributes] == ["label"]
        assert payload.attributes[0].args == ["Bob's"]
        assert payload.comment == "the nickname"

    def test_framework_attribute_is_extracted(self) -> None:
        payload = parse_field_line("name: string `[MaxLength(100)]` @required")

        assert payload.framework_attrs == ["MaxLength(100)"]
        assert payload.type_name == "string"
        assert [a.name for a in payload.attributes] == ["required"]

    def test_directive_line(self) -> None:
        payload = parse_field_line("@index(email, tenant_id)")

        assert payload.is_directive is True
        assert payload.attributes[0].name == "index"
        assert payload.attributes[0].args == ["email", "tenant_id"]

    def test_enum_value_shape(self) -> None:
        payload = parse_field_line('ACTIVE "Currently active"')

        assert payload.name == "ACTIVE"
        assert payload.description == "Currently active"
        assert payload.type_name is None

    def test_unparseable_line_keeps_only_name(self) -> None:
        payload = parse_field_line("not a field!")

        assert payload.name == "not a field!"
        assert payload.type_name is None
        assert payload.attributes == []

    def test_quoted_parens_do_not_end_attribute(self) -> None:
        payload = parse_field_line('note: string @meta("a)b, c") @required')

        assert [a.name for a in payload.attributes] == ["meta", "required"]
        assert payload.attributes[0].raw_args == '"a)b, c"'
        assert payload.attributes[0].args == ["a)b, c"]

    def test_attribute_argument_types(self) -> None:
        payload = parse_field_line('score: float @range(1, 2.5, true, "x", key: "v")')

        assert payload.attributes[0].args == [1, 2.5, True, "x", "key: v"]

    def test_attribute_without_parentheses_has_no_args(self) -> None:
        payload = parse_field_line("id: identifier @primary")

        assert payload.attributes[0].args is None

    def test_code_block_attaches_to_previous_field(self) -> None:
        text = "- total: decimal @computed\n\n```sql\nprice * qty\n```"
        tokens = tokenize(text, "code.m3l.md")
        block = tokens[0].payload.code_block

        assert block is not None
        assert block.content == "price * qty"
        assert block.language == "sql"


# =============================================================================
# Scanner helpers
# =============================================================================


class TestScanner:
    """Quote- and bracket-aware scanning helpers."""

    def test_split_top_level_respects_nesting(self) -> None:
        parts = split_top_level("a, b(c, d), 'e, f', [g, h]")

        assert parts == ["a", "b(c, d)", "'e, f'", "[g, h]"]

    def test_find_balanced_paren_skips_quotes(self) -> None:
        text = 'f(a, ")", b) rest'

        assert find_balanced_paren(text, 1) == 11

    def test_find_balanced_paren_unbalanced(self) -> None:
        assert find_balanced_paren("f(a, b", 1) == -1

    def test_find_balanced_paren_treats_lone_apostrophe_as_text(self) -> None:
        assert find_balanced_paren("(Bob's) tail", 0) == 6

    def test_find_balanced_paren_angle_brackets(self) -> None:
        text = "map<string, list<int>>?"

        assert find_balanced_paren(text, 3, "<", ">") == 21

    def test_split_top_level_angle_brackets(self) -> None:
        parts = split_top_level("string, map<string, int>", angle_brackets=True)

        assert parts == ["string", "map<string, int>"]

    def test_find_closing_quote_handles_escapes(self) -> None:
        text = r'"a \" b" tail'

        assert find_closing_quote(text, 0) == 7

    @pytest.mark.parametrize(
        "text,expected",
        [
            ('"price * qty"', "price * qty"),
            ("'x'", "x"),
            ('""nested""', '""nested""'),
            ('"a" + "b"', '"a" + "b"'),
            ("plain", "plain"),
        ],
    )
    def test_unquote_strips_one_layer(self, text: str, expected: str) -> None:
        assert unquote(text) == expected

    def test_split_inline_comment_needs_surrounding_spaces(self) -> None:
        assert split_inline_comment("color: string = #fff") == ("color: string = #fff", None)

    def test_split_inline_comment_after_lone_apostrophe(self) -> None:
        assert split_inline_comment("@label(Bob's) # the nickname") == (
            "@label(Bob's)",
            "the nickname",
        )
