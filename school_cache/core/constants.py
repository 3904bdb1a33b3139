"""Core constants: cache key structure and shared literal values.

Single source of truth for storage key layout. Used by the key builder,
the fallback cache manager, and the maintenance script.
"""

# Root namespace for every key the fallback cache writes.
CACHE_KEY_PREFIX = "sms"

# Delimiter between key segments and between a scope name and its value.
CACHE_KEY_SEP = ":"
CACHE_PARAM_SEP = "="

# Resource sub-namespaces extend the root as <root>-<name> (e.g. "sms-teacher").
CACHE_NAMESPACE_SEP = "-"

# Scope dimensions with special meaning for bulk clears.
SCOPE_USER_ID = "user_id"
SCOPE_TENANT_ID = "tenant_id"
SCOPE_SCHOOL_ID = "school_id"
TENANT_SCOPE_NAMES = (SCOPE_TENANT_ID, SCOPE_SCHOOL_ID)

# Envelopes written before schema versioning carry no version field.
LEGACY_SCHEMA_VERSION = 0

# Tag prefix used when a route path is invalidated on the tagged cache.
PATH_TAG_PREFIX = "path:"
