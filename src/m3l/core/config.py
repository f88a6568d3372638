"""
Compile options for the M3L pipeline.

Options are passed explicitly by callers; ``CompileOptions.from_env()``
offers the same settings through environment variables for tools that
wrap the pipeline:

    M3L_STRICT           Enable strict-mode warnings (1/true/yes/on)
    M3L_PROJECT_NAME     Project name reported in the AST
    M3L_PROJECT_VERSION  Project version reported in the AST

Usage:
    from m3l.core.config import CompileOptions

    options = CompileOptions.from_env()
    ast = compile_sources(sources, options)
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

from .ir import ProjectInfo

STRICT_ENV_VAR = "M3L_STRICT"
PROJECT_NAME_ENV_VAR = "M3L_PROJECT_NAME"
PROJECT_VERSION_ENV_VAR = "M3L_PROJECT_VERSION"

_TRUTHY = {"1", "true", "yes", "on"}


class CompileOptions(BaseModel):
    """
    Options for one compilation.

    Attributes:
        strict: Run the style warnings (W001, W002, W004)
        project: Project metadata; the first declared namespace is used
            as the name when omitted
    """

    strict: bool = False
    project: ProjectInfo | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CompileOptions:
        """Build options from ``M3L_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            CompileOptions; unset variables keep their defaults
        """
        env = os.environ if environ is None else environ
        strict = env.get(STRICT_ENV_VAR, "").strip().lower() in _TRUTHY

        name = env.get(PROJECT_NAME_ENV_VAR) or None
        version = env.get(PROJECT_VERSION_ENV_VAR) or None
        project = ProjectInfo(name=name, version=version) if name or version else None
        return cls(strict=strict, project=project)
