"""Directive registry - name -> DirectiveSchema.

Populated once through :class:`RegistryBuilder` and then frozen into a
:class:`DirectiveRegistry`. The frozen registry has no mutating API, so
any number of validation passes can share one handle without locking.

Callers get a registry from :func:`build_registry` and pass it to the
resolver explicitly; there is no module-level registry instance.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import TYPE_CHECKING

from supervisectl.domain.errors import SchemaDefinitionError
from supervisectl.domain.schema import DirectiveSchema

if TYPE_CHECKING:
    from supervisectl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class DirectiveRegistry:
    """Immutable lookup table of directive schemas."""

    def __init__(self, schemas: dict[str, DirectiveSchema]) -> None:
        self._schemas = MappingProxyType(dict(schemas))

    def lookup(self, name: str) -> DirectiveSchema | None:
        """Return the schema registered under *name*, or None."""
        return self._schemas.get(name)

    def names(self) -> list[str]:
        """Registered directive names in registration order."""
        return list(self._schemas)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[DirectiveSchema]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)


class RegistryBuilder:
    """Mutable staging area used only during startup."""

    def __init__(self) -> None:
        self._schemas: dict[str, DirectiveSchema] = {}
        self._built = False

    def register(self, schema: DirectiveSchema) -> RegistryBuilder:
        """Add *schema*.

        Raises:
            SchemaDefinitionError: On a duplicate name or after :meth:`build`.
        """
        if self._built:
            msg = f"Cannot register {schema.name!r}: registry already built"
            raise SchemaDefinitionError(msg)
        if schema.name in self._schemas:
            msg = f"Directive {schema.name!r} is already registered"
            raise SchemaDefinitionError(msg)
        self._schemas[schema.name] = schema
        return self

    def register_all(self, schemas: Iterable[DirectiveSchema]) -> RegistryBuilder:
        for schema in schemas:
            self.register(schema)
        return self

    def build(self) -> DirectiveRegistry:
        """Freeze the staged schemas into a read-only registry."""
        self._built = True
        logger.debug("Directive registry built with %d schemas", len(self._schemas))
        return DirectiveRegistry(self._schemas)


def build_registry(
    *,
    include_builtins: bool = True,
    plugins: PluginManager | None = None,
    extra: Iterable[DirectiveSchema] = (),
) -> DirectiveRegistry:
    """Build the process registry.

    Order: built-in schemas, then plugin-contributed schemas, then
    *extra*. Any name collision raises :class:`SchemaDefinitionError`.
    """
    builder = RegistryBuilder()
    if include_builtins:
        from supervisectl.domain.builtins import builtin_directives

        builder.register_all(builtin_directives())
    if plugins is not None:
        builder.register_all(plugins.collect_directives())
    builder.register_all(extra)
    return builder.build()
