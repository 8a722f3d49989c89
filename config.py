"""Settings read from the environment when the process starts.

Every value has a default suitable for local play; deployments override
them with environment variables (``STARTING_BANKROLL``, ``REDIS_ENABLED``,
``LOG_LEVEL`` ...).
"""

import os
import secrets
from dataclasses import dataclass, field


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return default if raw is None or not raw.strip() else int(raw)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _chip_values() -> tuple[int, ...]:
    chips = tuple(sorted(int(v) for v in _env_list("CHIP_VALUES", "10,25,50,100")))
    if any(chip <= 0 for chip in chips):
        raise ValueError(f"CHIP_VALUES must be positive, got {chips}")
    return chips


@dataclass(frozen=True)
class GameConfig:
    """Table rules handed to every new round engine."""

    starting_bankroll: int = field(default_factory=lambda: _env_int("STARTING_BANKROLL", 1000))
    dealer_stands_on: int = field(default_factory=lambda: _env_int("DEALER_STANDS_ON", 17))
    allow_double: bool = field(default_factory=lambda: _env_flag("ALLOW_DOUBLE", True))
    # Denominations offered by the betting panel
    chip_values: tuple[int, ...] = field(default_factory=_chip_values)


@dataclass(frozen=True)
class RedisConfig:
    enabled: bool = field(default_factory=lambda: _env_flag("REDIS_ENABLED", False))
    host: str = field(default_factory=lambda: _env_str("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: _env_int("REDIS_PORT", 6379))
    db: int = field(default_factory=lambda: _env_int("REDIS_DB", 0))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class CORSConfig:
    allowed_origins: list[str] = field(
        default_factory=lambda: _env_list("CORS_ORIGINS", "http://localhost:8000")
    )
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["GET", "POST"])
    allow_headers: list[str] = field(default_factory=lambda: ["Content-Type", "X-Session-ID"])


@dataclass(frozen=True)
class RateLimitConfig:
    enabled: bool = field(default_factory=lambda: _env_flag("RATE_LIMIT_ENABLED", True))
    requests_per_minute: int = field(default_factory=lambda: _env_int("RATE_LIMIT_RPM", 60))

    @property
    def limit(self) -> str:
        """The limit in slowapi notation."""
        return f"{self.requests_per_minute}/minute"


@dataclass(frozen=True)
class SecurityConfig:
    # Without SECRET_KEY, tokens stop verifying when the process restarts
    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY") or secrets.token_urlsafe(32)
    )


@dataclass(frozen=True)
class LoggingConfig:
    level: str = field(default_factory=lambda: _env_str("LOG_LEVEL", "INFO").upper())
    format: str = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", False))
    host: str = field(default_factory=lambda: _env_str("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8000))
    # Idle seconds before a table and its token expire
    session_ttl: int = field(default_factory=lambda: _env_int("SESSION_TTL", 3600))

    game: GameConfig = field(default_factory=GameConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


config = AppConfig()
