# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Environment-driven configuration.

Each concern reads its own ``PREFIX_*`` variables; ``Settings`` groups
them and adds the top-level ``ENVIRONMENT``, ``DEBUG`` and ``LOG_LEVEL``.
``.env`` in the working directory is read as well.

Example:
    >>> from src.core.config.settings import get_settings
    >>> get_settings().attendance.credential_ttl_minutes
    10
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

DEFAULT_JWT_SECRET = "change-this-in-production"


def _prefixed(prefix: str) -> SettingsConfigDict:
    return SettingsConfigDict(env_prefix=prefix, extra="ignore")


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection and pool (``DB_*``)."""

    model_config = _prefixed("DB_")

    user: str = "seminar"
    password: SecretStr = SecretStr("seminar_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "seminar_attendance"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """asyncpg URL used by the service and by migrations."""
        return URL.create(
            "postgresql+asyncpg",
            username=self.user,
            password=self.password.get_secret_value(),
            host=self.host,
            port=self.port,
            database=self.database,
        ).render_as_string(hide_password=False)


class RedisSettings(BaseSettings):
    """Redis for the Dramatiq broker and the rate limiter (``REDIS_*``)."""

    model_config = _prefixed("REDIS_")

    host: str = "localhost"
    port: int = 6379
    password: SecretStr = SecretStr("")
    database: int = 0

    @property
    def url(self) -> str:
        secret = self.password.get_secret_value()
        auth = f":{secret}@" if secret else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.database}"


class JWTSettings(BaseSettings):
    """Bearer token verification (``JWT_*``).

    Tokens come from the identity provider; minting here is only used by
    local tooling and tests.
    """

    model_config = _prefixed("JWT_")

    secret_key: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60


class AttendanceSettings(BaseSettings):
    """Self check-in credentials (``ATTENDANCE_*``).

    Attributes:
        credential_ttl_minutes: How long an issued token and code stay valid.
        token_bytes: Random bytes behind the hex scan token.
        scan_base_url: Origin the scan deep link points at.
        check_in_rate_limit: slowapi limit string for the check-in endpoints.
    """

    model_config = _prefixed("ATTENDANCE_")

    credential_ttl_minutes: int = Field(default=10, gt=0)
    token_bytes: int = 16
    scan_base_url: str = "http://localhost:3000"
    check_in_rate_limit: str = "30/minute"

    @field_validator("token_bytes")
    @classmethod
    def at_least_128_bits(cls, value: int) -> int:
        if value < 16:
            raise ValueError("token_bytes must be at least 16")
        return value


class ReminderSettings(BaseSettings):
    """Periodic session reminders (``REMINDER_*``)."""

    model_config = _prefixed("REMINDER_")

    enabled: bool = True
    hours_ahead: int = Field(default=24, gt=0)
    interval_minutes: int = Field(default=60, gt=0)


class RateLimitSettings(BaseSettings):
    """slowapi limits (``RATE_LIMIT_*``).

    ``storage_uri`` falls back to the Redis URL; tests use ``memory://``.
    """

    model_config = _prefixed("RATE_LIMIT_")

    requests_per_minute: int = 120
    storage_uri: str | None = None


class CORSSettings(BaseSettings):
    """Browser origins allowed to call the API (``CORS_*``)."""

    model_config = _prefixed("CORS_")

    origins: str = "http://localhost:3000"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """``origins`` split on commas, blanks dropped."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class Settings(BaseSettings):
    """All configuration for one process.

    Obtain it through ``get_settings()`` so every caller shares one copy.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    attendance: AttendanceSettings = Field(default_factory=AttendanceSettings)
    reminders: ReminderSettings = Field(default_factory=ReminderSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @model_validator(mode="after")
    def refuse_default_secret_in_production(self) -> Self:
        """Production must not run with the shipped JWT secret.

        Raises:
            ValueError: If ``JWT_SECRET_KEY`` was left at its default.
        """
        if self.is_production and self.jwt.secret_key.get_secret_value() == DEFAULT_JWT_SECRET:
            raise ValueError(
                "JWT secret key must be changed from default in production. "
                "Set JWT_SECRET_KEY environment variable."
            )
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()


def clear_settings_cache() -> None:
    """Forget the loaded settings so the next call re-reads the environment."""
    get_settings.cache_clear()
