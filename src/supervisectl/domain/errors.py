"""Issue model and schema-definition errors.

Two very different failure classes live here:

- :class:`Issue` - a structured validation finding about *user*
  configuration. Always returned, never raised.
- :class:`SchemaDefinitionError` - a defect in the schema authoring code
  itself (duplicate registration, empty variant list, ...). Raised at
  startup and meant to abort it.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class SchemaDefinitionError(Exception):
    """A directive schema was declared incorrectly.

    Only raised while descriptors, schemas or the registry are being
    built. Never produced by user configuration.
    """


class IssueCode(StrEnum):
    """Machine-readable validation failure codes."""

    UNKNOWN_DIRECTIVE = "UNKNOWN_DIRECTIVE"
    NO_MATCHING_VARIANT = "NO_MATCHING_VARIANT"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    INVALID_VALUE = "INVALID_VALUE"
    UNEXPECTED_FIELD = "UNEXPECTED_FIELD"
    DEPTH_EXCEEDED = "DEPTH_EXCEEDED"


class SourceLocation(BaseModel):
    """Line/column position reported by the parser (1-based)."""

    model_config = {"frozen": True}

    line: int
    column: int = 1

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class Issue(BaseModel):
    """One validation finding.

    Attributes:
        code: Failure class.
        directive: Directive whose body contained the problem.
        path: Dotted/indexed path to the offending value relative to the
            top-level directive body (``""`` for the body itself).
        message: Human-readable explanation.
        expected: Declared type or shape, when relevant.
        actual: Supplied shape, when relevant.
        location: Source position of the offending value, if known.
        detail: Extra diagnostics (e.g. closest variant, missing fields).
    """

    model_config = {"frozen": True}

    code: IssueCode
    directive: str
    path: str = ""
    message: str
    expected: str | None = None
    actual: str | None = None
    location: SourceLocation | None = None
    detail: dict[str, Any] = Field(default_factory=dict)

    def describe(self) -> str:
        """Single-line rendering used by human output."""
        where = f"{self.directive}.{self.path}" if self.path else self.directive
        if self.location is not None:
            where = f"{where} ({self.location})"
        return f"[{self.code}] {where}: {self.message}"
