"""
Semantic validation for resolved M3L ASTs.

Each ``check_*`` function inspects the AST and returns diagnostics without
modifying it. ``validate`` runs every error check and, in strict mode, the
style warnings too; no check short-circuits on earlier findings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

from pydantic import BaseModel, ConfigDict, Field

from . import ir
from .catalogs import MAX_LINE_LENGTH, MAX_LOOKUP_DEPTH, MAX_NESTING_DEPTH, REFERENCE_ATTRIBUTES

logger = logging.getLogger(__name__)

Check = Callable[[ir.M3LAST], list[ir.Diagnostic]]


class ValidationResult(BaseModel):
    """Diagnostics of a validation run, resolver diagnostics first."""

    errors: list[ir.Diagnostic] = Field(default_factory=list)
    warnings: list[ir.Diagnostic] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


def _model_map(ast: ir.M3LAST) -> dict[str, ir.ModelNode]:
    """Models and views by name; the first definition wins."""
    mapping: dict[str, ir.ModelNode] = {}
    for node in [*ast.models, *ast.views]:
        mapping.setdefault(node.name, node)
    return mapping


def _fields_of(ast: ir.M3LAST) -> Iterator[tuple[ir.ModelNode, ir.FieldNode]]:
    for node in [*ast.models, *ast.views]:
        for node_field in node.fields:
            yield node, node_field


def _diagnostic(code: ir.DiagnosticCode, message: str, location: ir.SourceLocation) -> ir.Diagnostic:
    return ir.Diagnostic.create(code, message, location.file, location.line, location.column)


# =============================================================================
# Reference checks
# =============================================================================


def check_rollup_references(ast: ir.M3LAST) -> list[ir.Diagnostic]:
    """
    E001: the foreign key a rollup aggregates over must be a reference.

    Rollups whose target model or FK field cannot be found are skipped.
    """
    errors: list[ir.Diagnostic] = []
    models = _model_map(ast)
    for node, node_field in _fields_of(ast):
        rollup = node_field.rollup
        if node_field.kind != ir.FieldKind.ROLLUP or rollup is None:
            continue
        target = models.get(rollup.target_model)
        fk_field = target.get_field(rollup.fk_field) if target else None
        if fk_field is None or fk_field.has_attribute(*REFERENCE_ATTRIBUTES):
            continue
        errors.append(
            _diagnostic(
                ir.DiagnosticCode.ROLLUP_FK_MISSING_REFERENCE,
                f'Rollup field "{node.name}.{node_field.name}" aggregates over '
                f'"{rollup.target_model}.{rollup.fk_field}", which has no @reference or @fk attribute',
                node_field.location,
            )
        )
    return errors


def check_lookup_references(ast: ir.M3LAST) -> list[ir.Diagnostic]:
    """
    E002: the first hop of a lookup path must be a reference field.

    Only the first segment is checked, against the model that declares the
    lookup; a missing field is skipped.
    """
    errors: list[ir.Diagnostic] = []
    for node, node_field in _fields_of(ast):
        lookup = node_field.lookup
        if node_field.kind != ir.FieldKind.LOOKUP or lookup is None:
            continue
        segments = lookup.path.split(".")
        if len(segments) < 2:
            continue
        fk_field = node.get_field(segments[0])
        if fk_field is None or fk_field.has_attribute(*REFERENCE_ATTRIBUTES):
            continue
        errors.append(
            _diagnostic(
                ir.DiagnosticCode.LOOKUP_FK_MISSING_REFERENCE,
                f'Lookup field "{node.name}.{node_field.name}" follows "{segments[0]}", '
                "which has no @reference or @fk attribute",
                node_field.location,
            )
        )
    return errors


def check_view_sources(ast: ir.M3LAST) -> list[ir.Diagnostic]:
    """E004: a view's ``from`` must name a model or view of the merged AST."""
    errors: list[ir.Diagnostic] = []
    models = _model_map(ast)
    for view in ast.views:
        source = view.source_def.from_ if view.source_def else None
        if source and source not in models:
            errors.append(
                _diagnostic(
                    ir.DiagnosticCode.VIEW_SOURCE_MISSING,
                    f'View "{view.name}" references unknown source model "{source}"',
                    view.location,
                )
            )
    return errors


def check_duplicate_fields(ast: ir.M3LAST) -> list[ir.Diagnostic]:
    """E006: field names must be unique within each model and view."""
    errors: list[ir.Diagnostic] = []
    for node in [*ast.models, *ast.views]:
        seen: set[str] = set()
        for node_field in node.fields:
            if node_field.name in seen:
                errors.append(
                    _diagnostic(
                        ir.DiagnosticCode.DUPLICATE_FIELD,
                        f'Duplicate field "{node_field.name}" in {node.kind.value} "{node.name}"',
                        node_field.location,
                    )
                )
            seen.add(node_field.name)
    return errors


# =============================================================================
# Strict-mode style checks
# =============================================================================


def estimate_line_length(node_field: ir.FieldNode) -> int:
    """
    Approximate length of the field written on a single line.

    ``- name(Label): type(params)? = default @attr(args) "description"``
    """
    length = 2 + len(node_field.name)
    if node_field.label:
        length += len(node_field.label) + 2
    if node_field.type:
        length += 2 + len(node_field.type)
        if node_field.generic_params:
            length += len(",".join(node_field.generic_params)) + 2
        if node_field.size_params:
            length += len(",".join(node_field.size_params)) + 2
        if node_field.is_array:
            length += 2
        if node_field.nullable:
            length += 1
    if node_field.default_value:
        length += 3 + len(node_field.default_value)
    for attr in node_field.attributes:
        length += 2 + len(attr.name)
        if attr.args:
            length += len(",".join(str(arg) for arg in attr.args)) + 2
    if node_field.description:
        length += 3 + len(node_field.description)
    return length


def check_line_length(ast: ir.M3LAST) -> list[ir.Diagnostic]:
    """W001: fields whose one-line form would exceed the maximum width."""
    warnings: list[ir.Diagnostic] = []
    for node, node_field in _fields_of(ast):
        length = estimate_line_length(node_field)
        if length > MAX_LINE_LENGTH:
            warnings.append(
                _diagnostic(
                    ir.DiagnosticCode.LINE_TOO_LONG,
                    f'Field "{node.name}.{node_field.name}" is about {length} characters '
                    f"on one line (max {MAX_LINE_LENGTH}); consider the extended format",
                    node_field.location,
                )
            )
    return warnings


def check_nesting_depth(ast: ir.M3LAST) -> list[ir.Diagnostic]:
    """W002: object fields nested too deeply."""
    warnings: list[ir.Diagnostic] = []

    def walk(node: ir.ModelNode, fields: list[ir.FieldNode], depth: int) -> None:
        for node_field in fields:
            if not node_field.sub_fields:
                continue
            if depth >= MAX_NESTING_DEPTH:
                warnings.append(
                    _diagnostic(
                        ir.DiagnosticCode.NESTING_TOO_DEEP,
                        f'Object field "{node_field.name}" in "{node.name}" is nested '
                        f"at depth {depth} (limit {MAX_NESTING_DEPTH})",
                        node_field.location,
                    )
                )
            walk(node, node_field.sub_fields, depth + 1)

    for node in [*ast.models, *ast.views]:
        walk(node, node.fields, 1)
    return warnings


def check_lookup_depth(ast: ir.M3LAST) -> list[ir.Diagnostic]:
    """W004: lookup chains with too many hops."""
    warnings: list[ir.Diagnostic] = []
    for node, node_field in _fields_of(ast):
        if node_field.lookup is None:
            continue
        segments = node_field.lookup.path.split(".")
        if len(segments) > MAX_LOOKUP_DEPTH:
            warnings.append(
                _diagnostic(
                    ir.DiagnosticCode.LOOKUP_CHAIN_TOO_LONG,
                    f'Lookup "{node.name}.{node_field.name}" follows {len(segments)} segments '
                    f"(max {MAX_LOOKUP_DEPTH})",
                    node_field.location,
                )
            )
    return warnings


ERROR_CHECKS: tuple[Check, ...] = (
    check_rollup_references,
    check_lookup_references,
    check_view_sources,
    check_duplicate_fields,
)

STRICT_CHECKS: tuple[Check, ...] = (
    check_line_length,
    check_nesting_depth,
    check_lookup_depth,
)


def validate(ast: ir.M3LAST, strict: bool = False) -> ValidationResult:
    """
    Run semantic checks over a resolved AST.

    Args:
        ast: Resolved AST (its existing diagnostics are carried over)
        strict: Also run the style warnings

    Returns:
        ValidationResult with the AST's diagnostics followed by new ones
    """
    errors = list(ast.errors)
    warnings = list(ast.warnings)

    for check in ERROR_CHECKS:
        errors.extend(check(ast))
    if strict:
        for check in STRICT_CHECKS:
            warnings.extend(check(ast))

    logger.debug(
        "Validation finished: %d errors, %d warnings (strict=%s)",
        len(errors),
        len(warnings),
        strict,
    )
    return ValidationResult(errors=errors, warnings=warnings)
