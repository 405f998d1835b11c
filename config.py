import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    # Konfigurasi API Gemini
    gemini_api_key: str = Field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    gemini_model: str = Field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash"))
    gemini_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        )
    )
    request_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT_SECONDS", "120"))
    )

    # Input limits
    max_video_mb: int = Field(default_factory=lambda: int(os.getenv("MAX_VIDEO_MB", "50")))
    max_text_chars: int = Field(default_factory=lambda: int(os.getenv("MAX_TEXT_CHARS", "200000")))

    # Sessions
    max_sessions: int = Field(default_factory=lambda: int(os.getenv("MAX_SESSIONS", "100")))
    session_ttl_seconds: float = Field(
        default_factory=lambda: float(os.getenv("SESSION_TTL_SECONDS", "3600"))
    )

    # Server
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    cors_origins: str = Field(default_factory=lambda: os.getenv("CORS_ORIGINS", "*"))
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")))

    @property
    def max_video_bytes(self) -> int:
        return self.max_video_mb * 1024 * 1024

    @property
    def generate_url(self) -> str:
        return f"{self.gemini_base_url.rstrip('/')}/models/{self.gemini_model}:generateContent"


_cached_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return process-wide settings, reading the environment on first use."""
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = Settings()
    return _cached_settings


def reset_settings() -> None:
    global _cached_settings
    _cached_settings = None
