"""supervisectl - validate supervision-strategy configuration."""

__version__ = "0.1.0"
