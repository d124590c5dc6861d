"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
Capabilities: extra directive schemas, post-validation notifications.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from supervisectl.domain.schema import DirectiveSchema
from supervisectl.plugins.hookspecs import SupervisectlHookSpec

PROJECT_NAME = "supervisectl"
ENTRY_POINT_GROUP = "supervisectl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(SupervisectlHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Discover plugins registered under the ``supervisectl.plugins`` group.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def collect_directives(self) -> list[DirectiveSchema]:
        """Gather directive schemas from every plugin, in registration order.

        A plugin that raises or returns something other than a list of
        :class:`DirectiveSchema` is logged and skipped. Duplicate names
        are left for the registry builder to reject.
        """
        collected: list[DirectiveSchema] = []
        for plugin in self._pm.get_plugins():
            plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
            collected.extend(self._plugin_directives(plugin, plugin_name))
        return collected

    def notify_validated(self, *, source: str, entries: int, issues_found: int) -> list[str]:
        """Fire ``post_validate``; returns warnings for failing plugins."""
        try:
            self._pm.hook.post_validate(source=source, entries=entries, issues_found=issues_found)
        except Exception:
            logger.debug("post_validate dispatch failed", exc_info=True)
            return ["Plugin hook post_validate failed"]
        return []

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _plugin_directives(plugin: object, plugin_name: str) -> list[DirectiveSchema]:
        hook = getattr(plugin, "supervisectl_directives", None)
        if hook is None:
            return []

        try:
            schemas: Any = hook()
        except Exception:
            logger.warning(
                "Failed to collect directives from plugin %s",
                plugin_name,
                exc_info=True,
            )
            return []

        if schemas is None:
            return []
        if not isinstance(schemas, list):
            logger.warning("Plugin %s returned non-list directive registrations", plugin_name)
            return []

        accepted = []
        for schema in schemas:
            if isinstance(schema, DirectiveSchema):
                accepted.append(schema)
            else:
                logger.warning(
                    "Skipping directive registration %r from plugin %s",
                    schema,
                    plugin_name,
                )
        return accepted

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("supervisectl")`` sets a
        ``supervisectl_impl`` attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "supervisectl_impl", None):
                return True
        return False
