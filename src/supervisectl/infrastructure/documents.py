"""Load JSON and TOML configuration documents into the parsed value tree.

Native document convention:

- Each top-level key names a directive. Its value is the directive body
  (a table) or a list of bodies, one entry per occurrence.
- Nested tables become mapping values named after their field; the
  resolver falls back to the field name for the directive.
- Inside arrays, a single-key table whose value is a table names its
  directive: ``[{"retries": {"count": 5}}]``.
- Strings that read as durations (``"10s"``, ``"250 ms"``, ``"5 min"``,
  ``"2 hours"``) become duration literals.

Example (TOML)::

    [cluster]
    node-name = "alpha"
    role = "worker"

    [[process]]
    pid = "/root/user/worker"
    strategy = { retries = { count = 5, duration = "30s" } }
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from datetime import timedelta
from pathlib import Path
from typing import Any

from supervisectl.domain.values import (
    ArrayValue,
    LiteralKind,
    LiteralValue,
    MappingValue,
    ParsedDocument,
    ParsedEntry,
    ParsedValue,
    lit,
)

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = frozenset({".json", ".toml"})

_DURATION = re.compile(
    r"^\s*(?P<amount>\d+(?:\.\d+)?)\s*"
    r"(?P<unit>ms|milliseconds?|s|secs?|seconds?|m|mins?|minutes?|h|hours?|d|days?)\s*$",
    re.IGNORECASE,
)

_UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "millisecond": 0.001,
    "milliseconds": 0.001,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
}


class DocumentError(Exception):
    """A configuration document could not be read or has an unusable shape."""


def parse_duration(text: str) -> timedelta | None:
    """Return the duration *text* denotes, or None if it is not one.

    Raises:
        DocumentError: *text* is a duration too large to represent.
    """
    match = _DURATION.match(text)
    if match is None:
        return None
    seconds = float(match["amount"]) * _UNIT_SECONDS[match["unit"].lower()]
    try:
        return timedelta(seconds=seconds)
    except OverflowError as exc:
        msg = f"Duration out of range: {text!r}"
        raise DocumentError(msg) from exc


def from_native(value: Any) -> ParsedValue:
    """Convert decoded JSON/TOML data into a parsed value."""
    if isinstance(value, dict):
        return MappingValue({str(k): from_native(v) for k, v in value.items()})
    if isinstance(value, list):
        return ArrayValue(tuple(_array_item(item) for item in value))
    if isinstance(value, str):
        duration = parse_duration(value)
        if duration is not None:
            return LiteralValue(LiteralKind.DURATION, duration)
        return LiteralValue(LiteralKind.STRING, value)
    try:
        return lit(value)
    except TypeError as exc:
        msg = f"Unsupported value {value!r}"
        raise DocumentError(msg) from exc


def _array_item(item: Any) -> ParsedValue:
    if isinstance(item, dict) and len(item) == 1:
        ((name, body),) = item.items()
        if isinstance(body, dict):
            converted = from_native(body)
            assert isinstance(converted, MappingValue)
            return MappingValue(converted.fields, name=str(name))
    return from_native(item)


def document_from_data(data: dict[str, Any], *, source: str | None = None) -> ParsedDocument:
    """Build a :class:`ParsedDocument` from an already-decoded mapping."""
    entries: list[ParsedEntry] = []
    for directive, raw in data.items():
        bodies = raw if isinstance(raw, list) else [raw]
        for body in bodies:
            if not isinstance(body, dict):
                msg = f"Body of '{directive}' must be a table, got {type(body).__name__}"
                raise DocumentError(msg)
            converted = from_native(body)
            assert isinstance(converted, MappingValue)
            entries.append(
                ParsedEntry(
                    directive=str(directive),
                    body=MappingValue(converted.fields, name=str(directive)),
                )
            )
    return ParsedDocument(entries=tuple(entries), source=source)


def load_document(path: Path) -> ParsedDocument:
    """Read *path* (``.json`` or ``.toml``) into a parsed document.

    Raises:
        DocumentError: Unsupported suffix, unreadable file, invalid
            syntax, or a top level that is not a table of directives.
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        msg = f"Unsupported document type '{suffix or path.name}' (expected .json or .toml)"
        raise DocumentError(msg)

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read {path}: {exc}"
        raise DocumentError(msg) from exc

    try:
        data = json.loads(raw) if suffix == ".json" else tomllib.loads(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        msg = f"Invalid {suffix[1:].upper()} in {path}: {exc}"
        raise DocumentError(msg) from exc

    if not isinstance(data, dict):
        msg = f"Top level of {path} must be a table of directives"
        raise DocumentError(msg)

    document = document_from_data(data, source=str(path))
    logger.debug("Loaded %d entries from %s", len(document.entries), path)
    return document
