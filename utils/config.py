"""Process-wide configuration loaded from the environment."""

import os
import logfire

from functools import lru_cache

from dotenv import load_dotenv

from fastapi import Request

from pydantic import BaseModel, Field

from typing import Annotated, Optional

load_dotenv()

DEV_ACCESS_TOKEN_SECRET = "dev-access-token-secret-change-me"
DEV_REFRESH_TOKEN_SECRET = "dev-refresh-token-secret-change-me"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime settings for the Blog API."""

    environment: Annotated[str, Field(default="development")]
    access_token_secret: Annotated[str, Field(default=DEV_ACCESS_TOKEN_SECRET)]
    refresh_token_secret: Annotated[str, Field(default=DEV_REFRESH_TOKEN_SECRET)]
    access_token_ttl_seconds: Annotated[int, Field(default=15 * 60, gt=0)]
    refresh_token_ttl_seconds: Annotated[int, Field(default=7 * 24 * 3600, gt=0)]
    jwt_algorithm: Annotated[str, Field(default="HS256")]
    bcrypt_rounds: Annotated[int, Field(default=10, ge=4, le=31)]
    database_connection_string: Annotated[str, Field(default="mongodb://localhost:27017")]
    database_name: Annotated[str, Field(default="blog")]
    use_memory_store: Annotated[bool, Field(default=False)]
    logfire_token: Annotated[Optional[str], Field(default=None)]

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "test")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and a `.env` file if present)."""
        return cls(
            environment=os.getenv("ENVIRONMENT", "development"),
            access_token_secret=os.getenv("JWT_SECRET") or DEV_ACCESS_TOKEN_SECRET,
            refresh_token_secret=os.getenv("REFRESH_TOKEN_SECRET") or DEV_REFRESH_TOKEN_SECRET,
            access_token_ttl_seconds=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")) * 60,
            refresh_token_ttl_seconds=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7")) * 24 * 3600,
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "10")),
            database_connection_string=os.getenv(
                "DATABASE_CONNECTION_STRING", "mongodb://localhost:27017"
            ),
            database_name=os.getenv("DATABASE_NAME", "blog"),
            use_memory_store=_env_flag("USE_MEMORY_STORE"),
            logfire_token=os.getenv("LOGFIRE_WRITE_TOKEN") or None,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the cached process-wide settings."""
    return Settings.from_env()


def check_security_configuration(settings: Settings) -> None:
    """Abort startup when token secrets are unsafe outside development.

    Raises:
        SystemExit: If one or more configuration errors were found.
    """
    errors = []

    if settings.access_token_secret == DEV_ACCESS_TOKEN_SECRET:
        errors.append("JWT_SECRET is unset")
    if settings.refresh_token_secret == DEV_REFRESH_TOKEN_SECRET:
        errors.append("REFRESH_TOKEN_SECRET is unset")
    if settings.access_token_secret == settings.refresh_token_secret:
        errors.append("JWT_SECRET and REFRESH_TOKEN_SECRET must differ")

    if not errors:
        return

    if settings.is_development:
        for error in errors:
            logfire.warning(f"Insecure token configuration (development only): {error}")
        return

    for error in errors:
        logfire.error(f"Token configuration error: {error}")
    raise SystemExit(f"Refusing to start with {len(errors)} configuration errors: {'; '.join(errors)}")


def get_app_settings(request: Request) -> Settings:
    """Return the settings the running application was created with."""
    return request.app.state.settings
