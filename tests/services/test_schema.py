"""Tests for SchemaService."""

from supervisectl.domain.registry import DirectiveRegistry
from supervisectl.services.schema import SchemaService


class TestDescribe:
    def test_lists_all(self, registry: DirectiveRegistry) -> None:
        result = SchemaService(registry).describe()
        assert result.ok
        assert result.op == "describe_schema"
        assert result.data["count"] == len(registry)
        names = [d["name"] for d in result.data["directives"]]
        assert names == registry.names()

    def test_single_directive(self, registry: DirectiveRegistry) -> None:
        result = SchemaService(registry).describe("retries")
        (entry,) = result.data["directives"]
        assert entry["takes_arguments"] is True
        assert [v["signature"] for v in entry["variants"]] == [
            "count: int, duration: duration",
            "count: int",
        ]
        assert entry["variants"][1]["fields"] == [{"name": "count", "type": "int"}]

    def test_no_argument_directive(self, registry: DirectiveRegistry) -> None:
        (entry,) = SchemaService(registry).describe("restart").data["directives"]
        assert entry["takes_arguments"] is False
        assert entry["variants"][0]["signature"] == ""

    def test_unknown_directive(self, registry: DirectiveRegistry) -> None:
        result = SchemaService(registry).describe("reboot")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "UNKNOWN_DIRECTIVE"
        assert "retries" in result.error.detail["available"]
