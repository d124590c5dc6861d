"""Config file discovery and loading.

``supervisectl.toml`` is found by walking up from the working
directory, the way git finds ``.git/``. ``SUPERVISECTL_CONFIG`` names a
file directly and disables the walk.
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "supervisectl.toml"
CONFIG_ENV_VAR = "SUPERVISECTL_CONFIG"

logger = logging.getLogger(__name__)


def search_dirs(start: Path | None = None) -> Iterator[Path]:
    """Yield *start* (default: cwd) and each of its ancestors, nearest first."""
    current = (start or Path.cwd()).resolve()
    yield current
    yield from current.parents


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies at *start*, or None.

    A set ``SUPERVISECTL_CONFIG`` wins even when it names a missing file,
    in which case no config applies.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    for directory in search_dirs(start):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_config(path: Path) -> dict[str, Any]:
    """Decode the TOML config at *path*.

    Raises:
        click.ClickException: The file cannot be read or is not valid TOML.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read config {path}: {exc}"
        raise click.ClickException(msg) from exc
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc
    logger.debug("Loaded config sections %s from %s", sorted(data), path)
    return data
