"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, supervisectl.toml only
contains overrides. An empty file (or no file) is a valid configuration.

The ``[resolver]`` section validates straight into
:class:`~supervisectl.domain.resolver.ResolverPolicy`.
"""

from __future__ import annotations

from pydantic import BaseModel


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
