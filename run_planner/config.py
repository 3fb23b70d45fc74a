"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger, mask_secret
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the run planner service."""
    model_config = SettingsConfigDict(env_prefix="PLANNER_", extra="ignore")

    forecast_days: int = 2
    forecast_cache_seconds: int = 900
    forecast_http_retries: int = 0  # a failed wake is retried by the next wake, not in place
    http_timeout_seconds: float = 10.0
    resend_api_key: str | None = None
    resend_url: str = "https://api.resend.com/emails"
    email_from: str = "Run Planner <onboarding@resend.dev>"
    event_redis_url: str | None = None
    event_redis_prefix: str = "run_planner:"
    event_database_url: str | None = None
    alarm_poll_seconds: float = 30.0
    alarm_loop_enabled: bool = True
    api_key: str | None = None
    default_timezone: str = "America/Chicago"

    @field_validator("resend_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize endpoint URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    dumped = settings.model_dump()
    dumped["resend_api_key"] = mask_secret(settings.resend_api_key)
    dumped["api_key"] = mask_secret(settings.api_key)
    logger.debug(f"Loaded settings: {dumped}")
