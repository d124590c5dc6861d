"""Configuration layer - settings, config discovery, logging setup."""
