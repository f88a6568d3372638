"""Shared pytest fixtures for M3L tests."""

from pathlib import Path

import pytest

from m3l.core import ir
from m3l.core.compiler import compile_sources


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def m3l_fixtures_dir(fixtures_dir: Path) -> Path:
    """Return path to M3L document fixtures."""
    return fixtures_dir / "m3l"


@pytest.fixture
def shop_sources(m3l_fixtures_dir: Path) -> list[tuple[str, str]]:
    """(source_id, text) pairs for the shop fixture, in lexicographic order."""
    return [
        (path.name, path.read_text(encoding="utf-8"))
        for path in sorted(m3l_fixtures_dir.glob("*.m3l.md"))
    ]


@pytest.fixture
def shop_ast(shop_sources: list[tuple[str, str]]) -> ir.M3LAST:
    """Compiled AST of the shop fixture."""
    return compile_sources(shop_sources)
