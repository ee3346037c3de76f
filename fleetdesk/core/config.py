"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Async driver URLs accepted as-is for DATABASE_URL.
VALID_DATABASE_URL_PREFIXES = (
    "postgresql+asyncpg://",
    "sqlite+aiosqlite://",
)

# Sync-style PostgreSQL URLs rewritten to the asyncpg driver.
REWRITTEN_DATABASE_URL_PREFIXES = (
    "postgresql://",
    "postgres://",
)

ALLOWED_JWT_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})

# Well-known placeholder secrets that must never sign real tokens.
PLACEHOLDER_JWT_SECRETS = frozenset(
    {
        "change-me",
        "change-me-in-production",
        "changeme",
        "secret",
        "your-secret-key-change-in-production",
    }
)

PROD_JWT_SECRET_MIN_LEN = 32

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    API_V1_PREFIX: str = "/api/v1"

    # Required: the credential store. No default so a misconfigured process refuses to start.
    DATABASE_URL: str
    DATABASE_TIMEOUT_SEC: float = 10.0

    # JWT authentication. JWT_SECRET is required; there is no fallback value.
    JWT_SECRET: SecretStr
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 10080

    BCRYPT_ROUNDS: int = 12

    # Bearer tokens, not cookies, so a wildcard origin is acceptable.
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        v = v.strip()
        for prefix in REWRITTEN_DATABASE_URL_PREFIXES:
            if v.startswith(prefix):
                return "postgresql+asyncpg://" + v[len(prefix):]
        if not any(v.startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL URL (postgresql:// or postgresql+asyncpg://) "
                "or an aiosqlite URL (sqlite+aiosqlite://)"
            )
        return v

    @field_validator("DATABASE_TIMEOUT_SEC")
    @classmethod
    def validate_database_timeout(cls, v: float) -> float:
        if v <= 0 or v > 60:
            raise ValueError("DATABASE_TIMEOUT_SEC must be greater than 0 and at most 60")
        return v

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        value = v.get_secret_value()
        if not value or not value.strip():
            raise ValueError("JWT_SECRET must be set and non-empty")
        if value.strip().lower() in PLACEHOLDER_JWT_SECRETS:
            raise ValueError("JWT_SECRET must not be a well-known placeholder value")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        v = (v or "").strip().upper()
        if v not in ALLOWED_JWT_ALGORITHMS:
            raise ValueError(
                f"JWT_ALGORITHM must be one of {sorted(ALLOWED_JWT_ALGORITHMS)}"
            )
        return v

    @field_validator("JWT_EXPIRE_MINUTES")
    @classmethod
    def validate_jwt_expire_minutes(cls, v: int) -> int:
        if v < 1 or v > 10080:
            raise ValueError(
                "JWT_EXPIRE_MINUTES must be between 1 and 10080 (1 min to 7 days)"
            )
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 16:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 16")
        return v

    @model_validator(mode="after")
    def validate_prod_secret_strength(self) -> "Settings":
        if (
            self.APP_ENV == "prod"
            and len(self.JWT_SECRET.get_secret_value()) < PROD_JWT_SECRET_MIN_LEN
        ):
            raise ValueError(
                f"JWT_SECRET must be at least {PROD_JWT_SECRET_MIN_LEN} characters when APP_ENV=prod"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
