"""Tests for the format_result dispatcher and OutputSettings."""

import json

import pytest
from pydantic import ValidationError

from supervisectl.output.formatters import OutputSettings, format_result
from supervisectl.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(ok=False, op=op, error=ServiceError(code="ERR", message=msg))


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False

    def test_frozen(self) -> None:
        s = OutputSettings(json_output=True)
        with pytest.raises(ValidationError):
            s.json_output = False  # type: ignore[misc]


class TestFormatResultJSON:
    def test_json_mode_returns_valid_json(self) -> None:
        output = format_result(_ok("validate", count=0), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "validate"
        assert data["data"]["count"] == 0

    def test_json_mode_error(self) -> None:
        output = format_result(_err("validate", "Bad"), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is False
        assert data["error"]["message"] == "Bad"

    def test_json_wins_over_quiet(self) -> None:
        settings = OutputSettings(json_output=True, quiet=True)
        assert json.loads(format_result(_ok(), settings=settings))["ok"] is True


class TestFormatResultQuiet:
    def test_quiet_success(self) -> None:
        output = format_result(_ok("validate"), settings=OutputSettings(quiet=True))
        assert output == "OK: validate"

    def test_quiet_error(self) -> None:
        output = format_result(_err("validate", "Bad input"), settings=OutputSettings(quiet=True))
        assert output == "ERROR: validate: Bad input"


class TestFormatResultRich:
    def test_default_settings_render_human_output(self) -> None:
        output = format_result(_ok("unknown_op", key="val"))
        assert not output.startswith("{")
        assert "OK" in output
        assert "key: val" in output
