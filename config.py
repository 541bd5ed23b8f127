"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field

from bjstats.rules import DAY_SECONDS


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _float_env(name: str, default: str) -> float:
    return float(os.getenv(name, default))


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    )
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "60"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )


@dataclass(frozen=True)
class PersistenceConfig:
    """Where bankrolls, lockouts and the terms flag are kept."""

    # Empty means in-memory only
    store_path: str | None = field(default_factory=lambda: os.getenv("STORE_PATH") or None)
    coins_ttl_seconds: float = DAY_SECONDS
    lockout_seconds: float = DAY_SECONDS


@dataclass(frozen=True)
class TableDefaults:
    """Pacing used for tables created through the API."""

    ai_delay: float = field(default_factory=lambda: _float_env("AI_DELAY_SECONDS", "1.0"))
    dealer_delay: float = field(
        default_factory=lambda: _float_env("DEALER_DELAY_SECONDS", "1.0")
    )
    reshuffle_delay: float = field(
        default_factory=lambda: _float_env("RESHUFFLE_DELAY_SECONDS", "1.5")
    )
    replay_history: int = 20


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    session_ttl: int = 3600  # Session timeout in seconds

    table: TableDefaults = field(default_factory=TableDefaults)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)


# Global configuration instance
config = AppConfig()
