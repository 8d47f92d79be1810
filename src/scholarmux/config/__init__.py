"""Configuration layer."""

from scholarmux.config.settings import Settings

__all__ = ["Settings"]
