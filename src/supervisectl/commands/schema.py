"""Command: describe registered directive schemas."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from supervisectl.commands._base import SupervisectlCommand

if TYPE_CHECKING:
    from supervisectl.commands._context import AppContext


@click.command(
    cls=SupervisectlCommand,
    examples="""\
  supervisectl schema
  supervisectl schema retries
  supervisectl --json schema backoff""",
)
@click.argument("name", required=False)
@click.pass_obj
def schema(app: AppContext, name: str | None) -> None:
    """List directives, or show the variants of directive NAME."""
    from supervisectl.services.schema import SchemaService

    app.emit(SchemaService(app.registry).describe(name))
