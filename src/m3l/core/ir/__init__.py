"""
M3L Intermediate Representation (IR) types.

All IR types are re-exported from this package; import them as
``from m3l.core import ir`` and refer to ``ir.ModelNode`` and friends.
"""

# Containers
from .ast import (
    M3LAST,
    ParsedFile,
    ProjectInfo,
)

# Diagnostics
from .diagnostics import (
    Diagnostic,
    DiagnosticCode,
    Severity,
)

# Enums
from .enums import EnumNode

# Fields
from .fields import (
    AttributeArg,
    ComputedDef,
    DefaultValueType,
    EnumValue,
    FieldAttribute,
    FieldKind,
    FieldNode,
    FrameworkAttribute,
    LookupDef,
    ParsedFrameworkAttr,
    RollupDef,
)

# Location
from .location import SourceLocation

# Models, interfaces and views
from .models import (
    JoinDef,
    ModelKind,
    ModelNode,
    RefreshDef,
    Sections,
    ViewSourceDef,
)

# Attribute registry
from .registry import AttributeRegistryEntry

__all__ = [
    "M3LAST",
    "ParsedFile",
    "ProjectInfo",
    "Diagnostic",
    "DiagnosticCode",
    "Severity",
    "EnumNode",
    "AttributeArg",
    "ComputedDef",
    "DefaultValueType",
    "EnumValue",
    "FieldAttribute",
    "FieldKind",
    "FieldNode",
    "FrameworkAttribute",
    "LookupDef",
    "ParsedFrameworkAttr",
    "RollupDef",
    "SourceLocation",
    "JoinDef",
    "ModelKind",
    "ModelNode",
    "RefreshDef",
    "Sections",
    "ViewSourceDef",
    "AttributeRegistryEntry",
]
