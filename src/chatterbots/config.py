"""Configuration management using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from pathlib import Path
from typing import List
import os


DEFAULT_GREETING_PROMPT = "Greet the user and introduce yourself and your role."


def _default_cors_origins() -> List[str]:
    """Build sane CORS defaults without hardcoded project port literals."""
    frontend_port = os.getenv("FRONTEND_PORT", "").strip()
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    if frontend_port:
        origins = [
            f"http://localhost:{frontend_port}",
            f"http://127.0.0.1:{frontend_port}",
            *origins,
        ]
    return origins


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Persistence
    state_dir: Path = Path("data/state")
    personal_personas_key: str = "chatterbots-personal-agents"

    # Conversation
    greeting_prompt: str = DEFAULT_GREETING_PROMPT
    audio_mime_type: str = "audio/pcm;rate=16000"
    event_log_size: int = Field(default=200, ge=1)

    # CORS Configuration
    cors_origins: List[str] = Field(default_factory=_default_cors_origins)

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("state_dir", "log_dir", mode="before")
    @classmethod
    def expand_dir(cls, value):
        if isinstance(value, str):
            return Path(os.path.expandvars(value)).expanduser()
        return value

    @field_validator("greeting_prompt")
    @classmethod
    def greeting_not_blank(cls, value: str) -> str:
        cleaned = (value or "").strip()
        return cleaned or DEFAULT_GREETING_PROMPT


# Global settings instance
settings = Settings()
