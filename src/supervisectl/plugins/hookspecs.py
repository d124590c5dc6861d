"""Pluggy hook specifications for supervisectl.

One setup-time hook lets plugins contribute directive schemas to the
registry before it is frozen. One post-validation hook reports the
outcome of every ``check`` run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from supervisectl.domain.schema import DirectiveSchema

hookspec = pluggy.HookspecMarker("supervisectl")


class SupervisectlHookSpec:
    """Hook specifications for the supervisectl plugin system."""

    @hookspec
    def supervisectl_directives(self) -> list[DirectiveSchema] | None:
        """Return directive schemas to add to the registry."""

    @hookspec
    def post_validate(
        self,
        source: str,
        entries: int,
        issues_found: int,
    ) -> None:
        """Called after a configuration document has been validated."""
