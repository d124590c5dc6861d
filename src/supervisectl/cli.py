"""Root CLI group for supervisectl with global flags and command registration."""

from __future__ import annotations

import click

from supervisectl import __version__
from supervisectl.commands import register_commands
from supervisectl.commands._base import SupervisectlGroup
from supervisectl.commands._context import AppContext
from supervisectl.config.settings import SupervisectlSettings


@click.group(
    cls=SupervisectlGroup,
    invoke_without_command=True,
    examples="""\
  supervisectl schema
  supervisectl check supervision.toml
  supervisectl --json -v check supervision.toml""",
)
@click.version_option(version=__version__, prog_name="supervisectl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--trace", is_flag=True, help="Also log every resolver decision.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    trace: bool,
    config_path: str | None,
) -> None:
    """supervisectl - validate supervision-strategy configuration."""
    ctx.ensure_object(dict)
    settings = SupervisectlSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        trace=trace,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
