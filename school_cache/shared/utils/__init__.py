"""Shared utilities: time helpers."""

from school_cache.shared.utils.datetime import now_millis, utc_now

__all__ = ["utc_now", "now_millis"]
