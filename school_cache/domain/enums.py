"""Domain enumerations for the school cache."""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class CacheResource(_ValuesMixin, str, Enum):
    """Logical resources the mobile/offline cache knows how to store."""

    USER_PROFILE = "USER_PROFILE"
    DASHBOARD_STATS = "DASHBOARD_STATS"
    TODAY_CLASSES = "TODAY_CLASSES"
    CLASS_LIST = "CLASS_LIST"
    STUDENT_LIST = "STUDENT_LIST"
    ASSIGNMENT_LIST = "ASSIGNMENT_LIST"
    SCHOOL_INFO = "SCHOOL_INFO"
    USER_PERMISSIONS = "USER_PERMISSIONS"
    TEACHER_DATA = "TEACHER_DATA"
    LESSON_PLANS = "LESSON_PLANS"
    BEHAVIORAL_NOTES = "BEHAVIORAL_NOTES"
    ATTENDANCE_DATA = "ATTENDANCE_DATA"


class CachePriority(_ValuesMixin, str, Enum):
    """How volatile a resource is (high = real-time, low = static)."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Freshness(_ValuesMixin, str, Enum):
    """Classification of a stored envelope against the current time and schema."""

    FRESH = "fresh"
    STALE = "stale"
    VERSION_MISMATCH = "version_mismatch"


class LookupStatus(_ValuesMixin, str, Enum):
    """Outcome of reading one key from the fallback cache."""

    HIT = "hit"
    MISS = "miss"
    STALE = "stale"
    VERSION_MISMATCH = "version_mismatch"
    DECODE_ERROR = "decode_error"
    STORAGE_ERROR = "storage_error"


class HealthState(_ValuesMixin, str, Enum):
    """Overall cache health derived from hit efficiency."""

    HEALTHY = "healthy"
    WARNING = "warning"
    UNHEALTHY = "unhealthy"


class CacheAction(_ValuesMixin, str, Enum):
    """Management actions accepted by POST /cache-health."""

    CLEAR = "clear"
    WARM = "warm"
