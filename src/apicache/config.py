"""Cache configuration using Pydantic Settings.

This module provides centralized configuration management with environment
variable validation, type coercion, and default values. Settings are read once
at startup and treated as read-only afterwards.

Environment variables use the ``APICACHE_`` prefix. The per-host map is given
as JSON:

    APICACHE_PERFORM_CACHING=true
    APICACHE_APIS='{"api.example.com": {"key_name": "example", "expire_in": 3600}}'
"""

from enum import Enum
from functools import lru_cache
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    CONSOLE = "console"


class ResponseFormat(str, Enum):
    """How upstream bodies are parsed, live or served from the cache."""

    JSON = "json"
    TEXT = "text"


class APIConfig(BaseModel):
    """Caching rules for one upstream host."""

    key_name: str = Field(
        min_length=1,
        description="Namespace used in cache and backup keys for this host",
    )
    expire_in: int = Field(
        gt=0,
        description="TTL in seconds for fresh responses",
    )
    format: ResponseFormat = Field(
        default=ResponseFormat.JSON,
        description="Body format of this host, applied to live and cached responses",
    )


class CacheSettings(BaseSettings):
    """Cache settings with environment variable validation.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="APICACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Caching
    # ========================================
    perform_caching: bool = Field(
        default=False,
        description="Master switch for the cache and backup machinery",
    )
    apis: dict[str, APIConfig] = Field(
        default_factory=dict,
        description="Per-host cache configuration keyed by request host",
    )
    read_from_cache: bool = Field(
        default=True,
        description="Serve cached bodies when present (can be overridden per call)",
    )
    backups_enabled: bool = Field(
        default=True,
        description="Keep last known-good bodies and serve them on upstream failure",
    )
    timeout_length: float = Field(
        default=5.0,
        gt=0,
        description="Upstream call timeout in seconds",
    )
    cache_stale_backup_time: int = Field(
        default=300,
        gt=0,
        description="TTL in seconds for a backup re-published after a failure",
    )

    # ========================================
    # Redis
    # ========================================
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="Log output format (json for production, console for dev)",
    )

    # ========================================
    # Derived Properties
    # ========================================
    @property
    def use_json_logs(self) -> bool:
        """Check if JSON logging should be used."""
        return self.log_format == LogFormat.JSON

    @property
    def configured_hosts(self) -> frozenset[str]:
        """Hosts eligible for caching."""
        return frozenset(self.apis)

    @field_validator("apis")
    @classmethod
    def lowercase_hosts(cls, v: dict[str, APIConfig]) -> dict[str, APIConfig]:
        """Match request hosts, which are compared in lowercase."""
        return {host.lower(): api for host, api in v.items()}

    @model_validator(mode="after")
    def check_stale_backup_time(self) -> Self:
        """A re-served backup must expire before a fresh entry would."""
        for host, api in self.apis.items():
            if self.cache_stale_backup_time >= api.expire_in:
                raise ValueError(
                    f"cache_stale_backup_time ({self.cache_stale_backup_time}s) "
                    f"must be shorter than expire_in of {host} ({api.expire_in}s)"
                )
        return self


@lru_cache
def get_settings() -> CacheSettings:
    """Get cached cache settings.

    This function is cached to avoid re-reading environment variables
    on every access.

    Returns:
        CacheSettings: Cache settings instance
    """
    return CacheSettings()
