"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./voiceowl.db"

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    project_name: str = "VoiceOwl Transcription API"
    version: str = "1.0.0"
    port: int = 3000

    # Remote speech service (mocked)
    azure_speech_key: str = "mock-azure-key"
    azure_region: str = "eastus"

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 900  # 15 minutes
    rate_limit_max_requests: int = 100
    rate_limit_transcription_window_seconds: int = 600  # 10 minutes
    rate_limit_transcription_max_requests: int = 20
    rate_limit_azure_window_seconds: int = 900
    rate_limit_azure_max_requests: int = 10

    # CORS
    cors_origins: List[str] = ["https://yourdomain.com"]

    # Workflow
    workflow_time_unit_seconds: float = 1.0  # auto-progression delays are 2/3/5 units
    workflow_download_failure_rate: float = 0.02
    transcription_download_failure_rate: float = 0.05

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
