"""Application configuration contract."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")

    vercel_token: str = Field(alias="VERCEL_TOKEN", default="")
    vercel_team_id: str = Field(alias="VERCEL_TEAM_ID", default="")
    vercel_api_base_url: str = Field(alias="VERCEL_API_BASE_URL", default="https://api.vercel.com")

    github_token: str = Field(alias="GITHUB_TOKEN", default="")
    github_api_base_url: str = Field(alias="GITHUB_API_BASE_URL", default="https://api.github.com")

    supabase_url: str = Field(alias="SUPABASE_URL", default="")
    supabase_anon_key: str = Field(alias="SUPABASE_ANON_KEY", default="")
    supabase_projects_table: str = Field(alias="SUPABASE_PROJECTS_TABLE", default="projects")
    supabase_entries_table: str = Field(
        alias="SUPABASE_ENTRIES_TABLE", default="context_entries"
    )

    http_timeout_seconds: float = Field(alias="HTTP_TIMEOUT_SECONDS", default=30.0)
    max_file_bytes: int = Field(alias="MAX_FILE_BYTES", default=1024 * 1024)
    max_payload_bytes: int = Field(alias="MAX_PAYLOAD_BYTES", default=8 * 1024 * 1024)

    web_cors_origins: str = Field(alias="WEB_CORS_ORIGINS", default="http://localhost:3000")

    # Security: bind host defaults to loopback
    bind_host: str = Field(alias="BIND_HOST", default="127.0.0.1")
    bind_port: int = Field(alias="BIND_PORT", default=8000)

    rate_limit_deploys_per_minute: int = Field(
        alias="RATE_LIMIT_DEPLOYS_PER_MINUTE", default=10
    )


def validate_settings_for_env(settings: Settings) -> None:
    import logging as _logging
    import warnings

    _logger = _logging.getLogger(__name__)

    if settings.app_env == "prod" and settings.bind_host == "0.0.0.0":
        msg = (
            "SECURITY WARNING: BIND_HOST=0.0.0.0 in production. "
            "Set BIND_HOST=127.0.0.1 and use a reverse proxy."
        )
        _logger.warning(msg)
        warnings.warn(msg, stacklevel=2)

    if settings.app_env != "prod":
        return

    missing: list[str] = []
    required_non_empty = {
        "VERCEL_TOKEN": settings.vercel_token,
        "SUPABASE_URL": settings.supabase_url,
        "SUPABASE_ANON_KEY": settings.supabase_anon_key,
    }
    for key, value in required_non_empty.items():
        if not value.strip():
            missing.append(key)
    if settings.supabase_url.strip() and not settings.supabase_url.startswith("https://"):
        missing.append("SUPABASE_URL(https required)")
    if settings.max_payload_bytes <= 0:
        missing.append("MAX_PAYLOAD_BYTES(positive value)")

    if missing:
        keys = ", ".join(sorted(set(missing)))
        raise ValueError(f"invalid production configuration: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
