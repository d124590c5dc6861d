"""Service result contract.

Every service method returns a :class:`ServiceResult`. Validation
findings travel as typed :class:`ReportedIssue` values rather than
loose dicts, so renderers and JSON consumers see the same schema.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from supervisectl.domain.errors import Issue


class ReportedIssue(Issue):
    """An :class:`Issue` tagged with the index of the document entry it came from."""

    entry: int = Field(ge=0)

    @classmethod
    def from_issue(cls, issue: Issue, *, entry: int) -> ReportedIssue:
        return cls.model_validate({**issue.model_dump(), "entry": entry})


class ServiceError(BaseModel):
    """Why an operation failed."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: False when ``error`` is set.
        op: Operation name (``"validate"``, ``"describe_schema"``).
        data: Operation payload. A failed validation still carries the
            objects it managed to build.
        issues: Validation findings, in document order.
        warnings: Non-fatal findings (unused fields, plugin failures).
        error: Set when the operation failed.
        meta: The resolver policy a validation ran under.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    issues: list[ReportedIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
