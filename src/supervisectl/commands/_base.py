"""Click base classes with an ``--examples`` flag.

Commands and groups built on these classes take an ``examples=`` text.
``--examples`` prints it and exits, so ``--help`` stays short. The text
may be written indented inside the decorator; it is dedented and shown
with a two-space indent.
"""

from __future__ import annotations

import textwrap
from typing import Any

import click


class ExamplesMixin:
    """Adds the eager ``--examples`` option to a Click command."""

    params: list[click.Parameter]
    examples: str | None = None

    def _attach_examples(self, examples: str | None) -> None:
        if not examples or not examples.strip():
            return
        self.examples = textwrap.dedent(examples).strip("\n")
        self.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=self._show_examples,
                help="Show usage examples.",
            )
        )

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing or self.examples is None:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(textwrap.indent(self.examples, "  "))
        ctx.exit(0)


class SupervisectlCommand(ExamplesMixin, click.Command):
    """Click Command that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._attach_examples(examples)


class SupervisectlGroup(ExamplesMixin, click.Group):
    """Click Group that supports an ``--examples`` flag.

    Subcommands default to :class:`SupervisectlCommand`, so they accept
    ``examples=`` without an explicit ``cls=``.
    """

    command_class = SupervisectlCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._attach_examples(examples)
