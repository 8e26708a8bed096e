"""Configuration management for the FraudBucket service.

Configuration is loaded from environment variables, grouped into
prefixed sections. Token secrets are never hardcoded: production
requires them explicitly, other environments fall back to random
per-process values.
"""

from __future__ import annotations

import logging
import secrets
from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Constants for database URL construction
POSTGRESQL_PREFIX = "postgresql://"
ASYNCPG_DRIVER = "+asyncpg"
PSYCOPG_DRIVER = "+psycopg"


class AppEnvironment(str, Enum):
    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AppConfig(BaseSettings):
    name: str = Field(default="fraudbucket-api")
    env: AppEnvironment = Field(default=AppEnvironment.LOCAL)
    version: str = Field(default="0.1.0")
    debug: bool = Field(default=False)
    log_level: LogLevel = Field(default=LogLevel.INFO)
    api_prefix: str = Field(default="/api/v1")

    model_config = SettingsConfigDict(env_prefix="APP_")

    @field_validator("env", mode="before")
    @classmethod
    def validate_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        if isinstance(v, AppEnvironment):
            return v
        return AppEnvironment(v.lower())

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        if isinstance(v, LogLevel):
            return v
        return LogLevel(v.upper())


class ServerConfig(BaseSettings):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    workers: int = Field(default=4)

    model_config = SettingsConfigDict(env_prefix="SERVER_")


class DatabaseConfig(BaseSettings):
    url: str = Field(default="")

    # Fallback: individual components
    host: str = Field(default="localhost")
    port: int = Field(default=5432)
    name: str = Field(default="fraudbucket")
    user: str = Field(default="postgres")
    password: SecretStr = Field(default=SecretStr(""))
    pool_size: int = Field(default=10)
    max_overflow: int = Field(default=20)
    pool_timeout: int = Field(default=30)
    pool_recycle: int = Field(default=1800)
    echo: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    @property
    def async_url(self) -> str:
        """Build async database URL."""
        if self.url:
            url = self.url
            if url.startswith(POSTGRESQL_PREFIX) and ASYNCPG_DRIVER not in url:
                new_prefix = POSTGRESQL_PREFIX.removesuffix("://") + ASYNCPG_DRIVER + "://"
                url = url.replace(POSTGRESQL_PREFIX, new_prefix, 1)
            return url
        password = self.password.get_secret_value()
        return f"postgresql{ASYNCPG_DRIVER}://{self.user}:{password}@{self.host}:{self.port}/{self.name}"

    @property
    def sync_url(self) -> str:
        """Build sync database URL for setup scripts (psycopg conninfo form)."""
        if self.url:
            return self.url.replace(ASYNCPG_DRIVER, "", 1).replace(PSYCOPG_DRIVER, "", 1)
        password = self.password.get_secret_value()
        return f"postgresql://{self.user}:{password}@{self.host}:{self.port}/{self.name}"


class RedisConfig(BaseSettings):
    url: str = Field(default="redis://localhost:6379/0")
    socket_timeout: float = Field(default=5.0)
    passcode_key_prefix: str = Field(default="passcode:")

    model_config = SettingsConfigDict(env_prefix="REDIS_")


class TokenConfig(BaseSettings):
    access_secret: SecretStr = Field(default=SecretStr(""))
    refresh_secret: SecretStr = Field(default=SecretStr(""))
    algorithm: str = Field(default="HS256")
    access_ttl_seconds: int = Field(default=3600, gt=0)
    refresh_ttl_seconds: int = Field(default=86400, gt=0)
    issuer: str = Field(default="fraudbucket-api")

    model_config = SettingsConfigDict(env_prefix="TOKEN_")


class PasswordResetConfig(BaseSettings):
    url: str = Field(default="http://localhost:5173/reset-password")
    passcode_ttl_seconds: int = Field(default=900, gt=0)

    model_config = SettingsConfigDict(env_prefix="PASSWORD_RESET_")


class EmailConfig(BaseSettings):
    smtp_host: str = Field(default="")
    smtp_port: int = Field(default=587)
    smtp_user: str = Field(default="")
    smtp_password: SecretStr = Field(default=SecretStr(""))
    use_tls: bool = Field(default=True)
    from_email: str = Field(default="")
    from_name: str = Field(default="FraudBucket")
    timeout_seconds: float = Field(default=30.0)

    model_config = SettingsConfigDict(env_prefix="EMAIL_")


class ObservabilityConfig(BaseSettings):
    service_name: str = Field(default="fraudbucket-api")
    otlp_endpoint: str | None = Field(default=None)
    otlp_insecure: bool = Field(default=True)
    log_record_format: str = Field(default="json")

    model_config = SettingsConfigDict(env_prefix="OTEL_")


class SecurityConfig(BaseSettings):
    cors_allowed_origins: str = Field(default="http://localhost:5173")
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "PATCH", "DELETE"])
    cors_allow_headers: list[str] = Field(default=["Authorization", "Content-Type"])
    sanitize_errors: bool = Field(default=True)  # Hide error details from clients
    refresh_cookie_name: str = Field(default="refreshToken")

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    @field_validator("cors_allowed_origins", mode="after")
    @classmethod
    def validate_cors_allowed_origins(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated string into list of origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class Settings(BaseSettings):
    app: AppConfig = Field(default_factory=AppConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    tokens: TokenConfig = Field(default_factory=TokenConfig)
    password_reset: PasswordResetConfig = Field(default_factory=PasswordResetConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    @model_validator(mode="after")
    def validate_token_secrets(self) -> Settings:
        """Require explicit, distinct token secrets in production."""
        access = self.tokens.access_secret.get_secret_value()
        refresh = self.tokens.refresh_secret.get_secret_value()

        if self.app.env == AppEnvironment.PROD:
            if not access or not refresh:
                raise ValueError(
                    "TOKEN_ACCESS_SECRET and TOKEN_REFRESH_SECRET must be set in prod"
                )
        else:
            if not access:
                logger.warning("TOKEN_ACCESS_SECRET not set; using a random per-process secret")
                self.tokens.access_secret = SecretStr(secrets.token_urlsafe(48))
            if not refresh:
                logger.warning("TOKEN_REFRESH_SECRET not set; using a random per-process secret")
                self.tokens.refresh_secret = SecretStr(secrets.token_urlsafe(48))

        if (
            self.tokens.access_secret.get_secret_value()
            == self.tokens.refresh_secret.get_secret_value()
        ):
            raise ValueError("Access and refresh token secrets must differ")
        return self

    @model_validator(mode="after")
    def validate_prod_endpoints(self) -> Settings:
        """Require the reset-link base and Redis URL to be supplied in production."""
        if self.app.env != AppEnvironment.PROD:
            return self

        missing = []
        if "url" not in self.password_reset.model_fields_set or not self.password_reset.url:
            missing.append("PASSWORD_RESET_URL")
        if "url" not in self.redis.model_fields_set or not self.redis.url:
            missing.append("REDIS_URL")
        if missing:
            raise ValueError(f"{' and '.join(missing)} must be set explicitly in prod")
        return self

    @property
    def is_production(self) -> bool:
        return self.app.env == AppEnvironment.PROD


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings (useful for testing)."""
    get_settings.cache_clear()
    return get_settings()
