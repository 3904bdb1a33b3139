"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Store backend and schema version are validated at
load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_STORE_BACKENDS = ("memory", "file", "redis")


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings have defaults suitable for local development (in-memory
    store, telemetry off). validate_cache_settings rejects unknown store
    backends and non-positive schema versions.
    """

    # App
    app_name: str = "school-cache"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8081"

    # Request / middleware
    cache_bypass_header: str = "X-Bypass-Cache"

    # Fallback cache: key namespace and envelope schema. Bump the schema
    # version to invalidate every stored envelope at once.
    cache_key_prefix: str = "sms"
    cache_schema_version: int = 1

    # Fallback cache store: "memory", "file" (persistent directory) or "redis"
    cache_store_backend: str = "memory"
    cache_store_path: str = ".cache/school-cache"

    # Redis store
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None

    # Network reachability probe used by cache stats (HEAD request).
    connectivity_check_url: str = "https://clients3.google.com/generate_204"
    connectivity_timeout_seconds: float = 3.0

    # Server tag cache
    tagged_cache_default_ttl_seconds: int = 300
    tagged_cache_max_entries: int = 1000

    # Health monitor: caches below this hit rate (%) are reported unhealthy.
    monitor_unhealthy_threshold: float = 50.0

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_cache_settings(self) -> "Settings":
        """Validate store backend, schema version and key prefix."""
        backend = self.cache_store_backend.lower()
        if backend not in _STORE_BACKENDS:
            raise ValueError(
                f"cache_store_backend must be one of {', '.join(_STORE_BACKENDS)}, "
                f"got: {self.cache_store_backend!r}"
            )
        self.cache_store_backend = backend
        if self.cache_schema_version < 1:
            raise ValueError(
                f"cache_schema_version must be >= 1, got {self.cache_schema_version}"
            )
        if not self.cache_key_prefix or ":" in self.cache_key_prefix:
            raise ValueError("cache_key_prefix must be non-empty and must not contain ':'")
        if self.tagged_cache_default_ttl_seconds <= 0:
            raise ValueError("tagged_cache_default_ttl_seconds must be > 0")
        if self.tagged_cache_max_entries <= 0:
            raise ValueError("tagged_cache_max_entries must be > 0")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
