"""AppContext - shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides the lazily built directive registry and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from supervisectl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from supervisectl.config.settings import SupervisectlSettings
    from supervisectl.domain.registry import DirectiveRegistry
    from supervisectl.plugins.manager import PluginManager
    from supervisectl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The registry (and plugin discovery) is built on first use so
    ``--help`` and ``--version`` never load plugins.
    """

    def __init__(self, settings: SupervisectlSettings) -> None:
        self.settings = settings
        self._registry: DirectiveRegistry | None = None
        self._plugins: PluginManager | None = None

        from supervisectl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            trace=settings.trace,
        )

    @property
    def plugins(self) -> PluginManager | None:
        """The plugin manager, or None when plugins are disabled."""
        if self._plugins is None and self.settings.plugins.enabled:
            from supervisectl.plugins.manager import PluginManager

            self._plugins = PluginManager()
            self._plugins.discover_and_load()
        return self._plugins

    @property
    def registry(self) -> DirectiveRegistry:
        """The directive registry (built lazily on first access)."""
        if self._registry is None:
            from supervisectl.domain.errors import SchemaDefinitionError
            from supervisectl.domain.registry import build_registry

            try:
                self._registry = build_registry(plugins=self.plugins)
            except SchemaDefinitionError as exc:
                raise click.ClickException(f"Invalid directive schema: {exc}") from exc
        return self._registry

    def emit(self, result: ServiceResult, *, exit_on_failure: bool = True) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1 (or returns when
          *exit_on_failure* is False, for commands handling several inputs).
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            if exit_on_failure:
                raise SystemExit(1)
