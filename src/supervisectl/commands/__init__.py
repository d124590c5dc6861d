"""Subcommand modules for supervisectl.

Provides register_commands() which uses deferred imports to keep
``supervisectl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from supervisectl.commands.check import check
    from supervisectl.commands.schema import schema

    cli.add_command(check)
    cli.add_command(schema)
