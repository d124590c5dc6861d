"""Command: validate configuration documents."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from supervisectl.commands._base import SupervisectlCommand

if TYPE_CHECKING:
    from supervisectl.commands._context import AppContext


@click.command(
    cls=SupervisectlCommand,
    examples="""\
  supervisectl check supervision.toml
  supervisectl check strategies.json workers.toml
  supervisectl --json check supervision.toml
  supervisectl -c ci.toml check supervision.toml""",
)
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.pass_obj
def check(app: AppContext, files: tuple[Path, ...]) -> None:
    """Validate FILES against the registered directive schemas.

    Every file is checked; the command exits 1 if any file has issues.
    """
    from supervisectl.services.validate import ValidationService

    svc = ValidationService(
        app.registry,
        policy=app.settings.resolver,
        plugins=app.plugins,
    )

    failed = False
    for path in files:
        result = svc.validate_path(path)
        failed = failed or not result.ok
        app.emit(result, exit_on_failure=False)
    if failed:
        raise SystemExit(1)
