"""
Per-file and merged AST containers.

ParsedFile is the output of parsing one document. M3LAST is the merged,
resolved result handed to code generators; its JSON shape is the public
output contract.
"""

from __future__ import annotations

import json

from pydantic import Field

from ..catalogs import AST_VERSION, PARSER_VERSION
from .base import IRNode
from .diagnostics import Diagnostic
from .enums import EnumNode
from .models import ModelNode
from .registry import AttributeRegistryEntry


class ProjectInfo(IRNode):
    name: str | None = None
    version: str | None = None


class ParsedFile(IRNode):
    """
    Everything declared in a single M3L document.

    Attributes:
        source_id: Identifier supplied by the caller, used verbatim in diagnostics
        namespace: Value of the ``# Namespace:`` heading, if any
        models: Plain models in declaration order
        enums: Standalone enums
        interfaces: Interfaces
        views: Derived views
        attribute_registry: Custom attribute definitions
        imports: Paths named by ``@import`` lines
    """

    source_id: str
    namespace: str | None = None
    models: list[ModelNode] = Field(default_factory=list)
    enums: list[EnumNode] = Field(default_factory=list)
    interfaces: list[ModelNode] = Field(default_factory=list)
    views: list[ModelNode] = Field(default_factory=list)
    attribute_registry: list[AttributeRegistryEntry] = Field(default_factory=list)
    imports: list[str] = Field(default_factory=list)


class M3LAST(IRNode):
    """
    Merged AST across all input documents.

    ``errors`` and ``warnings`` are append-only: each stage adds to them and
    never removes earlier findings.
    """

    parser_version: str = PARSER_VERSION
    ast_version: str = AST_VERSION
    project: ProjectInfo = Field(default_factory=ProjectInfo)
    sources: list[str] = Field(default_factory=list)
    models: list[ModelNode] = Field(default_factory=list)
    enums: list[EnumNode] = Field(default_factory=list)
    interfaces: list[ModelNode] = Field(default_factory=list)
    views: list[ModelNode] = Field(default_factory=list)
    attribute_registry: list[AttributeRegistryEntry] = Field(default_factory=list)
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def get_model(self, name: str) -> ModelNode | None:
        """Find a model or view by name."""
        for node in [*self.models, *self.views]:
            if node.name == name:
                return node
        return None

    def to_json(self, indent: int | None = 2) -> str:
        """Render the AST in its published JSON shape."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
