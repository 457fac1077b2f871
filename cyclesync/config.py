"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing or invalid."""


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "CycleSync"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Supabase ---
    supabase_url: str = Field(
        validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
    )
    supabase_anon_key: str = Field(
        validation_alias=AliasChoices("SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"),
    )
    # Optional direct postgres connection string; switches the data store to asyncpg
    supabase_db_url: str | None = None
    request_timeout_seconds: float | None = None  # None = httpx default

    # --- Session ---
    access_token_cookie: str = "sb-access-token"
    refresh_token_cookie: str = "sb-refresh-token"
    cookie_secure: bool = False
    session_refresh_margin_seconds: int = 30
    auth_redirect_path: str = "/auth"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "extra": "ignore",
    }

    @property
    def auth_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/auth/v1"


def load_settings(**overrides) -> Settings:
    """Build settings, turning missing Supabase credentials into a fatal error."""
    try:
        return Settings(**overrides)  # type: ignore[call-arg]
    except ValidationError as exc:
        missing = ", ".join(
            str(err["loc"][0]).upper() for err in exc.errors() if err["loc"]
        )
        raise ConfigurationError(
            "Missing Supabase configuration "
            f"({missing or 'invalid values'}). Set SUPABASE_URL and "
            "SUPABASE_ANON_KEY in the environment or a .env file."
        ) from exc


@lru_cache
def get_settings() -> Settings:
    return load_settings()
