"""Storefront Auth configuration, loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from storefront_auth import __version__

SECONDS_PER_DAY = 24 * 60 * 60

# HMAC only: issuer and verifier are the same process
ALLOWED_JWT_ALGORITHMS = ("HS256", "HS384", "HS512")

# Shortest secret per algorithm: at least as many bytes as the hash output
MIN_SECRET_BYTES = {"HS256": 32, "HS384": 48, "HS512": 64}


class Settings(BaseSettings):
    """Process-wide settings.

    Built once at startup and passed explicitly to the components that need
    it. JWT_SECRET_KEY has no default: the process refuses to start without it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Storefront Auth"
    app_version: str = __version__
    debug: bool = False
    log_level: str = "INFO"
    log_format: Literal["structured", "dev"] = "structured"

    # Accounts live in the primary application database; sessions get their own
    database_url: str = "sqlite+aiosqlite:///./db/app.db"
    session_store_url: str = "sqlite+aiosqlite:///./db/tokens.db"

    jwt_secret_key: str = Field(
        ...,
        min_length=32,
        validation_alias=AliasChoices("jwt_secret_key", "jwt_secret"),
    )
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "storefront"

    token_ttl_seconds: int = Field(default=7 * SECONDS_PER_DAY, gt=0)
    token_refresh_threshold_seconds: int = Field(default=SECONDS_PER_DAY, ge=0)

    auth_lookup_timeout_seconds: float = Field(default=5.0, gt=0)

    session_purge_interval_seconds: int = Field(default=3600, gt=0)
    session_purge_initial_delay_seconds: int = Field(default=60, ge=0)

    session_issue_max_retries: int = Field(default=3, ge=0)
    session_issue_retry_base_delay: float = Field(default=0.2, ge=0)

    cors_origins: str = "*"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"log_level must be one of {sorted(valid)}")
        return v.upper()

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if v.upper() not in ALLOWED_JWT_ALGORITHMS:
            raise ValueError(f"jwt_algorithm must be one of {list(ALLOWED_JWT_ALGORITHMS)}")
        return v.upper()

    @model_validator(mode="after")
    def validate_secret_length(self) -> "Settings":
        required = MIN_SECRET_BYTES[self.jwt_algorithm]
        if len(self.jwt_secret_key.encode("utf-8")) < required:
            raise ValueError(
                f"JWT_SECRET_KEY must be at least {required} bytes for {self.jwt_algorithm}"
            )
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def check_security_configuration(self) -> list[str]:
        """Return warnings for settings that are legal but risky."""
        warnings = []

        if len(set(self.jwt_secret_key)) < 8:
            warnings.append(
                "JWT_SECRET_KEY has very low character diversity. "
                "Generate one with: python -c 'import secrets; print(secrets.token_hex(32))'"
            )

        if self.debug:
            warnings.append("DEBUG is enabled. Do not run with DEBUG in production.")

        if self.token_ttl_seconds <= self.token_refresh_threshold_seconds:
            warnings.append(
                "TOKEN_TTL_SECONDS is not larger than TOKEN_REFRESH_THRESHOLD_SECONDS; "
                "every refresh will mint a new token."
            )

        if "*" in self.cors_origins_list:
            warnings.append("CORS_ORIGINS allows any origin.")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """Load settings once for the process entry point."""
    return Settings()  # type: ignore[call-arg]
