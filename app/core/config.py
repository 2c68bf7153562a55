"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal
from urllib.parse import quote_plus

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# libpq sslmode values accepted for DB_SSLMODE.
VALID_SSL_MODES = frozenset(
    {"disable", "allow", "prefer", "require", "verify-ca", "verify-full"}
)

# Tokens are only ever signed with the symmetric HMAC family.
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


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
    # Empty prefix serves /user/... and /admin/... at the root.
    API_PREFIX: str = ""

    # Postgres connection: host, user, password and name are required
    DB_HOST: str
    DB_USER: str
    DB_PASSWORD: SecretStr
    DB_NAME: str
    DB_PORT: int = 5432
    DB_SSLMODE: str = "disable"

    # Connection pool and datastore deadlines
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 90
    DB_POOL_RECYCLE_SEC: int = 3600
    DB_POOL_TIMEOUT_SEC: float = 30.0
    DB_CONNECT_TIMEOUT_SEC: int = 10
    DB_STATEMENT_TIMEOUT_MS: int = 15000

    SERVER_PORT: int = 8080

    # Bootstrap admin: login as "admin" with this secret. Unset or empty disables it.
    ADMIN_PASSWORD: SecretStr | None = None

    # JWT authentication
    JWT_SECRET: SecretStr
    JWT_ALGORITHM: str = "HS256"
    COOKIE_SECURE: bool = False

    # Rehash plaintext legacy rows on a matching login. Off means they cannot log in.
    ALLOW_LEGACY_PASSWORD_UPGRADE: bool = False

    @field_validator("DB_HOST", "DB_USER", "DB_NAME")
    @classmethod
    def validate_required_str(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("database host, user and name must be set and non-empty")
        return v.strip()

    @field_validator("DB_PASSWORD")
    @classmethod
    def validate_db_password(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("DB_PASSWORD must be set and non-empty")
        return v

    @field_validator("DB_PORT", "SERVER_PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("DB_SSLMODE")
    @classmethod
    def validate_sslmode(cls, v: str) -> str:
        s = (v or "").strip().lower()
        if not s:
            return "disable"
        if s not in VALID_SSL_MODES:
            raise ValueError(
                f"DB_SSLMODE must be one of: {', '.join(sorted(VALID_SSL_MODES))}"
            )
        return s

    @field_validator("DB_POOL_SIZE")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        if v < 1 or v > 1000:
            raise ValueError("DB_POOL_SIZE must be between 1 and 1000")
        return v

    @field_validator("DB_MAX_OVERFLOW")
    @classmethod
    def validate_max_overflow(cls, v: int) -> int:
        if v < 0 or v > 1000:
            raise ValueError("DB_MAX_OVERFLOW must be between 0 and 1000")
        return v

    @field_validator("DB_POOL_TIMEOUT_SEC")
    @classmethod
    def validate_pool_timeout(cls, v: float) -> float:
        if v <= 0 or v > 300:
            raise ValueError("DB_POOL_TIMEOUT_SEC must be greater than 0 and at most 300")
        return v

    @field_validator("DB_CONNECT_TIMEOUT_SEC")
    @classmethod
    def validate_connect_timeout(cls, v: int) -> int:
        if v < 1 or v > 300:
            raise ValueError("DB_CONNECT_TIMEOUT_SEC must be between 1 and 300")
        return v

    @field_validator("DB_STATEMENT_TIMEOUT_MS")
    @classmethod
    def validate_statement_timeout(cls, v: int) -> int:
        if v < 0:
            raise ValueError("DB_STATEMENT_TIMEOUT_MS must be 0 (no limit) or positive")
        return v

    @field_validator("ADMIN_PASSWORD")
    @classmethod
    def validate_admin_password(cls, v: SecretStr | None) -> SecretStr | None:
        if v is None or not v.get_secret_value():
            return None
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
        s = (v or "").strip().upper()
        if s not in HMAC_ALGORITHMS:
            raise ValueError(
                f"JWT_ALGORITHM must be one of: {', '.join(HMAC_ALGORITHMS)}"
            )
        return s

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the configured Postgres database."""
        user = quote_plus(self.DB_USER)
        password = quote_plus(self.DB_PASSWORD.get_secret_value())
        return (
            f"postgresql+psycopg2://{user}:{password}@{self.DB_HOST}:{self.DB_PORT}"
            f"/{self.DB_NAME}?sslmode={self.DB_SSLMODE}"
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read the environment again (e.g. after key rotation)."""
    get_settings.cache_clear()
    return get_settings()


settings = get_settings()
