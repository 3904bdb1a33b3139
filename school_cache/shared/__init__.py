"""Shared utilities: result type, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from school_cache.shared.result import Err, Ok, Result, UnwrapError
from school_cache.shared.utils import now_millis, utc_now

__all__ = [
    "Ok",
    "Err",
    "Result",
    "UnwrapError",
    "utc_now",
    "now_millis",
]
