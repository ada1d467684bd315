"""Reporter and generator settings via Pydantic BaseSettings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from runlens.types import ScreenshotOption

DEFAULT_SUITE = "Default Suite"
UNKNOWN_SUITE = "Unknown"
UNKNOWN_BROWSER = "Unknown"
NOT_AVAILABLE = "N/A"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RUNLENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Collector
    output_file: str = "reports/test-report.json"
    screenshot_option: ScreenshotOption = ScreenshotOption.NO
    suite_name_policy: str = "none"
    capture_browser_logs: bool = False
    browser_log_type: str = "browser"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
