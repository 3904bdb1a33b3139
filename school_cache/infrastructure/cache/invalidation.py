"""Tag vocabulary, data-cache profiles and invalidation rules for the tagged cache.

A mutation is described as (entity, operation); tags_for() returns the
tags it must invalidate. Route paths are invalidated through path tags.
"""

from __future__ import annotations

from dataclasses import dataclass

from school_cache.core.constants import PATH_TAG_PREFIX
from school_cache.domain.exceptions import ValidationException


class CacheTags:
    """Tags attached to fee-management queries."""

    FEE_STRUCTURES = "fee-structures"
    FEE_ASSIGNMENTS = "fee-assignments"
    INVOICES = "invoices"
    PAYMENTS = "payments"
    FINANCIAL_REPORTS = "financial-reports"
    DASHBOARD = "fee-dashboard"
    STUDENTS = "students"
    CLASSES = "classes"

    @classmethod
    def all(cls) -> tuple[str, ...]:
        return tuple(
            value for name, value in vars(cls).items() if name.isupper() and isinstance(value, str)
        )


class CacheDurations:
    """Revalidation windows in seconds."""

    SHORT = 60
    MEDIUM = 300
    LONG = 1800
    VERY_LONG = 3600


@dataclass(frozen=True)
class DataCacheProfile:
    """Revalidation window and group tag for a class of data."""

    revalidate_seconds: int
    tag: str
    description: str


DATA_CACHE_PROFILES: dict[str, DataCacheProfile] = {
    "STATIC": DataCacheProfile(3600, "static-data", "School settings, fee types, etc."),
    "SEMI_STATIC": DataCacheProfile(1800, "semi-static-data", "Fee structures, class information"),
    "DYNAMIC": DataCacheProfile(300, "dynamic-data", "Fee assignments, payment status"),
    "REALTIME": DataCacheProfile(60, "realtime-data", "Dashboard metrics, payment notifications"),
}

# entity -> operation -> tags to invalidate
CACHE_INVALIDATION: dict[str, dict[str, tuple[str, ...]]] = {
    "FEE_STRUCTURE": {
        "CREATE": ("fee-structures", "dashboard", "semi-static-data"),
        "UPDATE": ("fee-structures", "dashboard", "assignments", "semi-static-data"),
        "DELETE": ("fee-structures", "dashboard", "assignments", "semi-static-data"),
    },
    "FEE_ASSIGNMENT": {
        "CREATE": ("assignments", "dashboard", "dynamic-data"),
        "UPDATE": ("assignments", "dashboard", "dynamic-data"),
        "DELETE": ("assignments", "dashboard", "dynamic-data"),
        "BULK_CREATE": ("assignments", "dashboard", "fee-structures", "dynamic-data"),
    },
    "PAYMENT": {
        "CREATE": ("payments", "assignments", "dashboard", "invoices", "realtime-data"),
        "UPDATE": ("payments", "assignments", "dashboard", "realtime-data"),
        "VERIFY": ("payments", "assignments", "dashboard", "realtime-data"),
    },
    "INVOICE": {
        "CREATE": ("invoices", "dashboard", "dynamic-data"),
        "UPDATE": ("invoices", "dashboard", "dynamic-data"),
        "SEND": ("invoices", "dynamic-data"),
    },
}


def tags_for(entity: str, operation: str) -> tuple[str, ...]:
    """Tags invalidated by operation on entity (names are case-insensitive).

    Raises:
        ValidationException: If no rule exists for the pair.
    """
    operations = CACHE_INVALIDATION.get(entity.upper())
    if operations is None:
        raise ValidationException(f"No invalidation rules for entity {entity!r}", field="entity")
    tags = operations.get(operation.upper())
    if tags is None:
        raise ValidationException(
            f"No invalidation rule for {entity.upper()}.{operation.upper()}", field="operation"
        )
    return tags


def path_tag(path: str) -> str:
    """Tag under which entries rendered for a route path are indexed."""
    return f"{PATH_TAG_PREFIX}{path}"
