"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    STORE_BACKEND: str = "sqlite"
    CONTENT_DIR: str = "data/uploads"
    CONTENT_URL_PREFIX: str = "/uploads"
    PROVIDERS_CONFIG: str = "config/providers.yaml"
    DEMO_MODE_ENABLED: bool = False

    PERSONA_DEFAULT: str = "sarah-professional-hr"
    RECENT_CONTEXT_TURNS: int = Field(default=6, ge=1)
    MEMORY_WINDOW: int = Field(default=20, ge=1)
    MAX_MESSAGE_CHARS: int = Field(default=5000, ge=1)
    TURN_TOKEN_CACHE: int = Field(default=20, ge=0)

    GENERATION_TIMEOUT_S: float = 30.0
    SYNTHESIS_TIMEOUT_S: float = 30.0
    RECOGNITION_TIMEOUT_S: float = 30.0
    AVATAR_TIMEOUT_S: float = 60.0
    POLL_INTERVAL_S: float = 1.0
    POLL_BACKOFF: float = Field(default=1.0, ge=1.0)
    VIDEO_MAX_POLLS: int = 60
    TRANSCRIPTION_MAX_POLLS: int = 30
    SYNTHESIS_MAX_POLLS: int = 30

    PASS_THRESHOLD: float = 7.0
    REVIEW_THRESHOLD: float = 5.0

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
