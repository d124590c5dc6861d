"""Parsed Value tree - the untyped input handed over by the parser.

The text parser lives outside this package. Whatever it reads, it must
surface every configuration value as one of three shapes:

- :class:`LiteralValue` - bool, int, double, string or duration.
- :class:`ArrayValue` - an ordered list of values.
- :class:`MappingValue` - field name -> value (a nested directive body).

Nothing here promises that the tree matches any schema; that is the
resolver's job.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from supervisectl.domain.errors import SourceLocation


class LiteralKind(StrEnum):
    """Kinds of scalar literal the parser can produce."""

    BOOL = "bool"
    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    DURATION = "duration"


_PY_TYPES: dict[LiteralKind, type | tuple[type, ...]] = {
    LiteralKind.BOOL: bool,
    LiteralKind.INT: int,
    LiteralKind.DOUBLE: float,
    LiteralKind.STRING: str,
    LiteralKind.DURATION: timedelta,
}


@dataclass(frozen=True)
class LiteralValue:
    """A scalar literal."""

    kind: LiteralKind
    value: Any
    location: SourceLocation | None = None

    def __post_init__(self) -> None:
        expected = _PY_TYPES[self.kind]
        # bool is an int subclass; keep the two kinds apart.
        if self.kind is LiteralKind.INT and isinstance(self.value, bool):
            msg = "INT literal cannot hold a bool"
            raise TypeError(msg)
        if not isinstance(self.value, expected):
            msg = f"{self.kind} literal cannot hold {type(self.value).__name__}"
            raise TypeError(msg)

    def shape(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class ArrayValue:
    """An ordered array of parsed values."""

    items: tuple[ParsedValue, ...] = ()
    location: SourceLocation | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    def shape(self) -> str:
        return "array"


@dataclass(frozen=True)
class MappingValue:
    """A nested block: field name -> parsed value.

    ``name`` is the directive name the parser saw in front of the block
    (``retries:`` in ``one-for-one``), when it saw one.
    """

    fields: Mapping[str, ParsedValue] = field(default_factory=dict)
    name: str | None = None
    location: SourceLocation | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def shape(self) -> str:
        return f"directive '{self.name}'" if self.name else "mapping"


ParsedValue = LiteralValue | ArrayValue | MappingValue


@dataclass(frozen=True)
class ParsedEntry:
    """One top-level directive occurrence in a configuration document."""

    directive: str
    body: MappingValue
    name: str | None = None
    location: SourceLocation | None = None


@dataclass(frozen=True)
class ParsedDocument:
    """Everything the parser extracted from one configuration source."""

    entries: tuple[ParsedEntry, ...] = ()
    source: str | None = None


# ---------------------------------------------------------------------------
# Convenience constructors
# ---------------------------------------------------------------------------


def lit(value: Any, *, location: SourceLocation | None = None) -> LiteralValue:
    """Build a literal, inferring its kind from the Python value."""
    if isinstance(value, bool):
        kind = LiteralKind.BOOL
    elif isinstance(value, int):
        kind = LiteralKind.INT
    elif isinstance(value, float):
        kind = LiteralKind.DOUBLE
    elif isinstance(value, timedelta):
        kind = LiteralKind.DURATION
    elif isinstance(value, str):
        kind = LiteralKind.STRING
    else:
        msg = f"No literal kind for {type(value).__name__}"
        raise TypeError(msg)
    return LiteralValue(kind, value, location)


def block(name: str | None = None, /, **fields: ParsedValue) -> MappingValue:
    """Build a mapping value; keyword names have ``_`` replaced with ``-``."""
    return MappingValue({k.replace("_", "-"): v for k, v in fields.items()}, name=name)
