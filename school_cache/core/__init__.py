"""Core: config, constants, container, and application bootstrap."""

from school_cache.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
