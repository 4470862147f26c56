from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ------------------------------------------------------------------
    # Generation service (OpenAI-compatible chat completions endpoint)
    # ------------------------------------------------------------------
    generation_api_key: Optional[str] = None
    generation_base_url: str = "https://openrouter.ai/api/v1"
    generation_model: str = "google/gemini-2.0-flash-001"
    generation_timeout: float = 60.0
    generation_temperature: float = 0.2  # low for structured output

    # ------------------------------------------------------------------
    # Template engine
    # ------------------------------------------------------------------
    default_stack: Literal["node", "ssjs"] = "node"

    # ------------------------------------------------------------------
    # API server
    # ------------------------------------------------------------------
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
