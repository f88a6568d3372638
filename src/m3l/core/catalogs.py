"""
Read-only catalogues shared by every stage of the M3L pipeline.

Nothing in this module is mutated after import, so parses running in
parallel can read it freely.
"""

PARSER_VERSION = "0.4.0"
AST_VERSION = "1.0"

# =============================================================================
# Attributes
# =============================================================================

STANDARD_ATTRIBUTES: frozenset[str] = frozenset(
    {
        "primary",
        "unique",
        "required",
        "index",
        "generated",
        "immutable",
        "reference",
        "fk",
        "relation",
        "on_update",
        "on_delete",
        "searchable",
        "description",
        "visibility",
        "min",
        "max",
        "validate",
        "not_null",
        "computed",
        "computed_raw",
        "lookup",
        "rollup",
        "from",
        "persisted",
        "public",
        "private",
        "materialized",
        "meta",
        "behavior",
        "override",
        "default_attribute",
    }
)

# Attributes that mark a field as a foreign key
REFERENCE_ATTRIBUTES: frozenset[str] = frozenset({"reference", "fk"})

# =============================================================================
# Sections
# =============================================================================

# Level-3 headings that switch the implicit kind of subsequent fields
KIND_SECTIONS: dict[str, str] = {
    "lookup": "lookup",
    "rollup": "rollup",
    "computed": "computed",
    "computed from rollup": "computed",
}

SOURCE_DIRECTIVES: frozenset[str] = frozenset({"from", "where", "order_by", "group_by", "join"})

# =============================================================================
# Strict-mode thresholds
# =============================================================================

MAX_LINE_LENGTH = 80
MAX_NESTING_DEPTH = 3
MAX_LOOKUP_DEPTH = 3
