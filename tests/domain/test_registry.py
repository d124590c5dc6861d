"""Tests for the directive registry and its builder."""

import pluggy
import pytest

from supervisectl.domain.errors import SchemaDefinitionError
from supervisectl.domain.registry import RegistryBuilder, build_registry
from supervisectl.domain.schema import FieldSchema, directive, no_args, variant
from supervisectl.domain.types import INT
from supervisectl.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("supervisectl")


class TestRegistryBuilder:
    def test_register_and_lookup(self) -> None:
        schema = no_args("ping")
        registry = RegistryBuilder().register(schema).build()
        assert registry.lookup("ping") is schema
        assert "ping" in registry
        assert len(registry) == 1

    def test_lookup_missing_returns_none(self) -> None:
        assert RegistryBuilder().build().lookup("nope") is None

    def test_duplicate_rejected(self) -> None:
        builder = RegistryBuilder().register(no_args("ping"))
        with pytest.raises(SchemaDefinitionError, match="already registered"):
            builder.register(no_args("ping"))

    def test_register_after_build_rejected(self) -> None:
        builder = RegistryBuilder()
        builder.build()
        with pytest.raises(SchemaDefinitionError, match="already built"):
            builder.register(no_args("late"))

    def test_names_keep_registration_order(self) -> None:
        registry = RegistryBuilder().register_all([no_args("b"), no_args("a")]).build()
        assert registry.names() == ["b", "a"]
        assert [s.name for s in registry] == ["b", "a"]


class TestBuildRegistry:
    def test_includes_builtins(self) -> None:
        registry = build_registry()
        for name in ("restart", "forward-to-parent", "retries", "backoff", "strategy"):
            assert name in registry

    def test_without_builtins(self) -> None:
        assert len(build_registry(include_builtins=False)) == 0

    def test_extra_schemas(self) -> None:
        custom = directive("throttle", variant(FieldSchema("rate", INT)))
        registry = build_registry(extra=[custom])
        assert registry.lookup("throttle") is custom

    def test_extra_collision_with_builtin(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            build_registry(extra=[no_args("restart")])

    def test_plugin_directives(self) -> None:
        class ThrottlePlugin:
            @hookimpl
            def supervisectl_directives(self) -> list:
                return [directive("throttle", variant(FieldSchema("rate", INT)))]

        pm = PluginManager()
        pm.register_plugin(ThrottlePlugin())
        registry = build_registry(plugins=pm)
        assert "throttle" in registry

    def test_plugin_collision_raises(self) -> None:
        class ShadowPlugin:
            @hookimpl
            def supervisectl_directives(self) -> list:
                return [no_args("stop")]

        pm = PluginManager()
        pm.register_plugin(ShadowPlugin())
        with pytest.raises(SchemaDefinitionError):
            build_registry(plugins=pm)
