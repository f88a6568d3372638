"""
Multi-file resolution for M3L.

Merges per-file ASTs into one, reports duplicate names, and flattens
multi-parent inheritance into each element's field list. Resolution never
raises: every problem becomes a diagnostic and a best-effort AST is always
returned.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from . import ir
from .catalogs import AST_VERSION, PARSER_VERSION

logger = logging.getLogger(__name__)

OVERRIDE_ATTRIBUTE = "override"


@dataclass
class SymbolTable:
    """
    Symbol table for every top-level name across all files.

    Models, enums, interfaces and views share one namespace; the first
    definition of a name wins and later ones are reported as E005.
    """

    models: dict[str, ir.ModelNode] = field(default_factory=dict)
    interfaces: dict[str, ir.ModelNode] = field(default_factory=dict)
    enums: dict[str, ir.EnumNode] = field(default_factory=dict)
    views: dict[str, ir.ModelNode] = field(default_factory=dict)

    # First definition of each name (for error reporting)
    definitions: dict[str, ir.SourceLocation] = field(default_factory=dict)
    errors: list[ir.Diagnostic] = field(default_factory=list)

    def _register(self, name: str, kind: str, location: ir.SourceLocation) -> bool:
        first = self.definitions.get(name)
        if first is not None:
            self.errors.append(
                ir.Diagnostic.create(
                    ir.DiagnosticCode.DUPLICATE_NAME,
                    f'Duplicate {kind} name "{name}" (first defined in {first.file}:{first.line})',
                    location.file,
                    location.line,
                    location.column,
                )
            )
            return False
        self.definitions[name] = location
        return True

    def add_model(self, model: ir.ModelNode) -> None:
        """Add model to symbol table, checking for duplicates."""
        if self._register(model.name, "model", model.location):
            self.models[model.name] = model

    def add_interface(self, interface: ir.ModelNode) -> None:
        """Add interface to symbol table, checking for duplicates."""
        if self._register(interface.name, "interface", interface.location):
            self.interfaces[interface.name] = interface

    def add_enum(self, enum: ir.EnumNode) -> None:
        """Add enum to symbol table, checking for duplicates."""
        if self._register(enum.name, "enum", enum.location):
            self.enums[enum.name] = enum

    def add_view(self, view: ir.ModelNode) -> None:
        """Add view to symbol table, checking for duplicates."""
        if self._register(view.name, "view", view.location):
            self.views[view.name] = view

    def get_parent(self, name: str) -> ir.ModelNode | None:
        """Element usable as an inheritance parent (model or interface)."""
        return self.models.get(name) or self.interfaces.get(name)


def build_symbol_table(files: Sequence[ir.ParsedFile]) -> SymbolTable:
    """
    Build the symbol table, in file order and declaration order.

    Args:
        files: Parsed files in the order they were supplied

    Returns:
        SymbolTable with E005 diagnostics for duplicate names
    """
    table = SymbolTable()
    for parsed in files:
        declared = [
            *((model.line, table.add_model, model) for model in parsed.models),
            *((enum.line, table.add_enum, enum) for enum in parsed.enums),
            *((iface.line, table.add_interface, iface) for iface in parsed.interfaces),
            *((view.line, table.add_view, view) for view in parsed.views),
        ]
        declared.sort(key=lambda entry: entry[0])
        for _, add, node in declared:
            add(node)
    return table


class InheritanceResolver:
    """
    Flattens ``inherits`` lists into field lists.

    Each traversal is a depth-first walk: a parent's own parents are
    collected before the parent's fields, and ``collected`` remembers which
    ancestors were already merged so diamond hierarchies contribute their
    fields once. ``visiting`` holds the ancestors on the current path; a
    name seen again while still on the path is skipped, which guarantees
    termination on cyclic hierarchies.
    """

    def __init__(self, table: SymbolTable):
        self.table = table
        self.errors: list[ir.Diagnostic] = []
        self._reported: set[tuple[str, str]] = set()

    def inherited_fields(self, node: ir.ModelNode) -> list[ir.FieldNode]:
        """
        Fields contributed by all ancestors of ``node``, in ancestor order.

        When two ancestors declare the same field name the first one along
        the traversal wins.
        """
        fields: list[ir.FieldNode] = []
        seen_names: set[str] = set()
        collected: set[str] = set()
        visiting = {node.name}
        for parent in node.inherits:
            self._collect(parent, node, fields, seen_names, collected, visiting)
        return fields

    def _collect(
        self,
        name: str,
        child: ir.ModelNode,
        fields: list[ir.FieldNode],
        seen_names: set[str],
        collected: set[str],
        visiting: set[str],
    ) -> None:
        if name in collected or name in visiting:
            return

        parent = self.table.get_parent(name)
        if parent is None:
            # Names of other kinds (views, enums) are ignored without a diagnostic
            if name not in self.table.definitions:
                self._report_unresolved(name, child)
            return

        visiting.add(name)
        for grandparent in parent.inherits:
            self._collect(grandparent, parent, fields, seen_names, collected, visiting)
        visiting.discard(name)
        collected.add(name)

        for parent_field in parent.fields:
            if parent_field.name not in seen_names:
                seen_names.add(parent_field.name)
                fields.append(parent_field)

    def _report_unresolved(self, name: str, child: ir.ModelNode) -> None:
        key = (child.name, name)
        if key in self._reported:
            return
        self._reported.add(key)
        self.errors.append(
            ir.Diagnostic.create(
                ir.DiagnosticCode.UNRESOLVED_PARENT,
                f'Unresolved inheritance reference "{name}" in {child.kind.value} "{child.name}"',
                child.location.file,
                child.location.line,
                child.location.column,
            )
        )


def _prepare_field(node: ir.FieldNode, registered: set[str]) -> ir.FieldNode:
    """
    Copy a field for the resolved AST.

    The ``override`` marker is dropped and attributes defined in the
    attribute registry are tagged; sub-fields get the same treatment.
    """
    attributes = [
        attr.model_copy(update={"is_registered": attr.name in registered})
        for attr in node.attributes
        if attr.name != OVERRIDE_ATTRIBUTE
    ]
    update: dict = {"attributes": attributes}
    if node.sub_fields is not None:
        update["sub_fields"] = [_prepare_field(sub, registered) for sub in node.sub_fields]
    return node.model_copy(update=update, deep=True)


def _resolve_fields(
    node: ir.ModelNode, resolver: InheritanceResolver, registered: set[str]
) -> list[ir.FieldNode]:
    """Inherited fields (minus overridden ones) followed by the element's own fields."""
    overridden = {f.name for f in node.fields if f.has_attribute(OVERRIDE_ATTRIBUTE)}
    inherited = [f for f in resolver.inherited_fields(node) if f.name not in overridden]
    return [_prepare_field(f, registered) for f in [*inherited, *node.fields]]


def check_duplicate_fields(node: ir.ModelNode) -> list[ir.Diagnostic]:
    """Report fields whose name already appeared earlier in the element."""
    errors: list[ir.Diagnostic] = []
    first_seen: dict[str, ir.FieldNode] = {}
    for node_field in node.fields:
        first = first_seen.get(node_field.name)
        if first is None:
            first_seen[node_field.name] = node_field
            continue
        errors.append(
            ir.Diagnostic.create(
                ir.DiagnosticCode.DUPLICATE_NAME,
                f'Duplicate field name "{node_field.name}" in {node.kind.value} "{node.name}" '
                f"(first at line {first.location.line})",
                node_field.location.file,
                node_field.location.line,
                node_field.location.column,
            )
        )
    return errors


def resolve(
    files: Sequence[ir.ParsedFile], project: ir.ProjectInfo | None = None
) -> ir.M3LAST:
    """
    Merge parsed files into one resolved AST.

    Performs:
    1. Symbol table building with duplicate name detection (E005)
    2. Inheritance flattening with override handling (E007 for unknown parents)
    3. Duplicate field detection on the flattened field lists (E005)
    4. Attribute registry tagging

    Input nodes are never modified; the AST holds resolved copies.

    Args:
        files: Parsed files, in the order that decides which definition is "first"
        project: Optional project metadata

    Returns:
        Merged AST with resolution diagnostics
    """
    table = build_symbol_table(files)
    resolver = InheritanceResolver(table)

    registry = [entry for parsed in files for entry in parsed.attribute_registry]
    registered = {entry.name for entry in registry}

    def resolve_all(nodes: list[ir.ModelNode]) -> list[ir.ModelNode]:
        return [
            node.model_copy(
                update={"fields": _resolve_fields(node, resolver, registered)}, deep=True
            )
            for node in nodes
        ]

    models = resolve_all([m for parsed in files for m in parsed.models])
    interfaces = resolve_all([i for parsed in files for i in parsed.interfaces])
    views = resolve_all([v for parsed in files for v in parsed.views])
    enums = [e.model_copy(deep=True) for parsed in files for e in parsed.enums]

    field_errors: list[ir.Diagnostic] = []
    for node in [*models, *views]:
        field_errors.extend(check_duplicate_fields(node))

    project_info = project.model_copy() if project is not None else ir.ProjectInfo()
    if project_info.name is None:
        project_info.name = next((p.namespace for p in files if p.namespace), None)

    errors = [*table.errors, *resolver.errors, *field_errors]
    logger.debug(
        "Resolved %d files: %d models, %d enums, %d interfaces, %d views, %d errors",
        len(files),
        len(models),
        len(enums),
        len(interfaces),
        len(views),
        len(errors),
    )

    return ir.M3LAST(
        parser_version=PARSER_VERSION,
        ast_version=AST_VERSION,
        project=project_info,
        sources=[parsed.source_id for parsed in files],
        models=models,
        enums=enums,
        interfaces=interfaces,
        views=views,
        attribute_registry=[entry.model_copy() for entry in registry],
        errors=errors,
        warnings=[],
    )
