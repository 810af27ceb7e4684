"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
)

# Shortest JWT_SECRET accepted when APP_ENV=prod (HS256 wants >= 256 bits).
PROD_JWT_SECRET_MIN_LEN = 32


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "test", "prod"] = "dev"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    API_PREFIX: str = "/api"
    CORS_ORIGINS: list[str] = []

    # Postgres: required, no default
    DATABASE_URL: str

    # JWT authentication (Authorization: Bearer <token>)
    JWT_SECRET: SecretStr
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60

    # Rate limiting: per-role budgets per window
    RATE_LIMIT_BACKEND: Literal["remote", "memory"] = "remote"
    RATE_LIMIT_SERVICE_URL: str | None = None
    RATE_LIMIT_API_KEY: SecretStr | None = None
    RATE_LIMIT_REQUEST_TIMEOUT_SEC: float = 2.0
    # closed: reject with 503 when the rate limit service fails; open: admit
    RATE_LIMIT_FAIL_MODE: Literal["open", "closed"] = "closed"
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_ADMIN: int = 20
    RATE_LIMIT_USER: int = 10
    RATE_LIMIT_GUEST: int = 5

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL URL (e.g. postgresql:// or postgresql+psycopg2://)"
            )
        return v.strip()

    @field_validator("API_PREFIX")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith("/"):
            raise ValueError("API_PREFIX must start with '/' (e.g. /api)")
        return v

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("JWT_SECRET must be set and non-empty")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        return v.strip()

    @field_validator("JWT_EXPIRE_MINUTES")
    @classmethod
    def validate_jwt_expire_minutes(cls, v: int) -> int:
        if v < 1 or v > 1440:
            raise ValueError(
                "JWT_EXPIRE_MINUTES must be between 1 and 1440 (1 min to 1 day)"
            )
        return v

    @field_validator("RATE_LIMIT_SERVICE_URL")
    @classmethod
    def validate_rate_limit_service_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        s = v.strip().lower()
        if not (s.startswith("http://") or s.startswith("https://")):
            raise ValueError(
                "RATE_LIMIT_SERVICE_URL must use http or https (e.g. https://limits.example.com)"
            )
        return v.strip().rstrip("/")

    @field_validator("RATE_LIMIT_REQUEST_TIMEOUT_SEC")
    @classmethod
    def validate_rate_limit_timeout(cls, v: float) -> float:
        if v <= 0 or v > 30:
            raise ValueError(
                "RATE_LIMIT_REQUEST_TIMEOUT_SEC must be greater than 0 and at most 30"
            )
        return v

    @field_validator("RATE_LIMIT_WINDOW_SECONDS")
    @classmethod
    def validate_rate_limit_window(cls, v: int) -> int:
        if v < 1 or v > 3600:
            raise ValueError("RATE_LIMIT_WINDOW_SECONDS must be between 1 and 3600")
        return v

    @field_validator("RATE_LIMIT_ADMIN", "RATE_LIMIT_USER", "RATE_LIMIT_GUEST")
    @classmethod
    def validate_rate_limit_budget(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Rate limit budgets must be at least 1 request per window")
        return v

    @model_validator(mode="after")
    def validate_required_for_mode(self) -> "Settings":
        if self.RATE_LIMIT_BACKEND == "remote":
            if not self.RATE_LIMIT_SERVICE_URL:
                raise ValueError(
                    "RATE_LIMIT_SERVICE_URL is required when RATE_LIMIT_BACKEND=remote"
                )
            key = self.RATE_LIMIT_API_KEY
            if key is None or not key.get_secret_value().strip():
                raise ValueError(
                    "RATE_LIMIT_API_KEY is required when RATE_LIMIT_BACKEND=remote"
                )
        if (
            self.APP_ENV == "prod"
            and len(self.JWT_SECRET.get_secret_value()) < PROD_JWT_SECRET_MIN_LEN
        ):
            raise ValueError(
                f"JWT_SECRET must be at least {PROD_JWT_SECRET_MIN_LEN} characters in prod"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
