"""Tests for the operation-specific Rich renderers."""

from __future__ import annotations

from typing import Any

from supervisectl.output.renderers import render_quiet, render_result
from supervisectl.services.result import ReportedIssue, ServiceError, ServiceResult


def _issue(**overrides: Any) -> ReportedIssue:
    issue: dict[str, Any] = {
        "entry": 0,
        "code": "TYPE_MISMATCH",
        "directive": "strategy",
        "path": "retries.count",
        "message": "expected int, got string",
        "expected": "int",
        "actual": "string",
        "location": None,
        "detail": {},
    }
    issue.update(overrides)
    return ReportedIssue.model_validate(issue)


def _validate_result(issues: list[ReportedIssue]) -> ServiceResult:
    data = {
        "source": "app.toml",
        "entries": 2,
        "objects": [
            {
                "index": 0,
                "directive": "retries",
                "name": None,
                "variant": 1,
                "value": {"kind": "retries", "count": 5, "within": None},
            }
        ],
        "count": len(issues),
    }
    if not issues:
        return ServiceResult(ok=True, op="validate", data=data)
    return ServiceResult(
        ok=False,
        op="validate",
        data=data,
        issues=issues,
        error=ServiceError(code="INVALID_CONFIG", message=f"{len(issues)} issue(s) in app.toml"),
    )


class TestRenderValidate:
    def test_success_lists_objects(self) -> None:
        output = render_result(_validate_result([]))
        assert output.startswith("OK")
        assert "source: app.toml" in output
        assert "retries" in output
        assert "issue(s)" not in output

    def test_failure_lists_each_issue(self) -> None:
        output = render_result(
            _validate_result(
                [
                    _issue(),
                    _issue(
                        entry=1,
                        code="UNKNOWN_DIRECTIVE",
                        directive="reboot",
                        path="",
                        message="unknown directive 'reboot'",
                    ),
                ]
            )
        )
        assert output.startswith("ERROR")
        assert "TYPE_MISMATCH strategy.retries.count: expected int, got string" in output
        assert "UNKNOWN_DIRECTIVE reboot: unknown directive 'reboot'" in output
        assert output.endswith("2 issue(s)")

    def test_issue_location(self) -> None:
        output = render_result(_validate_result([_issue(location={"line": 3, "column": 5})]))
        assert "strategy.retries.count (3:5)" in output

    def test_markup_in_messages_is_escaped(self) -> None:
        output = render_result(_validate_result([_issue(message="got [bold]x[/bold]")]))
        assert "got [bold]x[/bold]" in output

    def test_verbose_shows_issue_detail(self) -> None:
        issue = _issue(code="NO_MATCHING_VARIANT", detail={"closest_variant": 1})
        output = render_result(_validate_result([issue]), verbose=True)
        assert "closest_variant: 1" in output

    def test_document_error_uses_error_renderer(self) -> None:
        result = ServiceResult(
            ok=False,
            op="validate",
            data={"source": "bad.toml"},
            error=ServiceError(code="DOCUMENT_ERROR", message="Invalid TOML in bad.toml"),
        )
        assert render_result(result) == "ERROR  validate: Invalid TOML in bad.toml"


class TestRenderSchema:
    def _schema(self, *names: str) -> ServiceResult:
        directives = [
            {
                "name": name,
                "takes_arguments": True,
                "variants": [
                    {"index": 0, "signature": "count: int", "fields": [], "builds": True},
                    {"index": 1, "signature": "", "fields": [], "builds": False},
                ],
            }
            for name in names
        ]
        return ServiceResult(
            ok=True,
            op="describe_schema",
            data={"directives": directives, "count": len(directives)},
        )

    def test_many_directives_render_table(self) -> None:
        output = render_result(self._schema("retries", "backoff"))
        assert "retries" in output
        assert "backoff" in output
        assert output.endswith("2 directives")

    def test_single_directive_lists_variants(self) -> None:
        output = render_result(self._schema("retries"))
        assert output.splitlines() == ["retries", "  0: count: int", "  1: (no fields)"]

    def test_unknown_directive_error(self) -> None:
        result = ServiceResult(
            ok=False,
            op="describe_schema",
            error=ServiceError(code="UNKNOWN_DIRECTIVE", message="No directive named 'x'"),
        )
        assert "No directive named 'x'" in render_result(result)


class TestRenderGeneric:
    def test_key_values(self) -> None:
        result = ServiceResult(ok=True, op="other", data={"a": 1, "b": [1, 2]})
        output = render_result(result)
        assert "a: 1" in output
        assert "b: [1,2]" in output

    def test_single_space_after_labels(self) -> None:
        result = ServiceResult(ok=True, op="other", data={"a": 1, "b": [1, 2]})
        assert render_result(result).splitlines() == ["OK  other", "  a: 1", "  b: [1,2]"]


class TestRenderQuiet:
    def test_ok(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="validate")) == "OK: validate"

    def test_error_without_detail(self) -> None:
        assert render_quiet(ServiceResult(ok=False, op="validate")) == (
            "ERROR: validate: Unknown error"
        )
