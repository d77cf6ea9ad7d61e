"""Runtime settings for the GA4 reporter.

Values are read from the environment once (e.g. GA4_MEASUREMENT_ID) and the
resulting Settings object is passed explicitly to the sender and middleware.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Default GA4 property; a report may still carry its own measurement id.
    ga4_measurement_id: str | None = None
    ga4_max_sessions: int = 10_000
    ga4_excluded_paths: list[str] = ["/health"]

    # Logging
    app_log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Cached Settings singleton."""
    return Settings()
