"""Shared pytest fixtures and test helpers for supervisectl tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from supervisectl.domain.registry import DirectiveRegistry, build_registry
from supervisectl.domain.resolver import Resolver


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(scope="session")
def registry() -> DirectiveRegistry:
    """Registry holding only the built-in directives."""
    return build_registry()


@pytest.fixture
def resolver(registry: DirectiveRegistry) -> Resolver:
    """Resolver with the default policy."""
    return Resolver(registry)


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run in an empty temp directory with no config discovery overrides.

    Use via ``@pytest.mark.usefixtures("_isolated_cwd")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SUPERVISECTL_CONFIG", raising=False)


def write_file(directory: Path, name: str, content: str) -> Path:
    """Write *content* to ``directory / name`` and return the path."""
    path = directory / name
    path.write_text(content, encoding="utf-8")
    return path
