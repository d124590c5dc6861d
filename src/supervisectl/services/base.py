"""BaseService - shared foundation for supervisectl services.

Every service receives the frozen :class:`DirectiveRegistry` at
construction time and never mutates it, so services are cheap to build
and safe to share.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from supervisectl.domain.registry import DirectiveRegistry
    from supervisectl.plugins.manager import PluginManager


class BaseService:
    """Base for all service-layer classes."""

    def __init__(
        self,
        registry: DirectiveRegistry,
        *,
        plugins: PluginManager | None = None,
    ) -> None:
        self._registry = registry
        self._plugins = plugins

    def _notify_validated(
        self,
        source: str,
        entries: int,
        issues_found: int,
        warnings: list[str],
    ) -> None:
        """Dispatch ``post_validate``. No-op without a plugin manager.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is None:
            return
        warnings.extend(
            self._plugins.notify_validated(
                source=source, entries=entries, issues_found=issues_found
            )
        )
