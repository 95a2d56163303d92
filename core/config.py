"""
Configuration for the Code Review Analyzer.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    ALLOWED_ORIGINS: str = Field(default="*")

    # Default backend (Gemini)
    GEMINI_API_KEY: str = Field(default="")
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash-lite")

    # Alternate backend (Groq), used when the caller supplies a key
    GROQ_BASE_URL: str = Field(default="https://api.groq.com/openai/v1/chat/completions")
    GROQ_MODEL: str = Field(default="meta-llama/llama-4-scout-17b-16e-instruct")

    # Generation settings
    MAX_TOKENS: int = Field(default=4096)
    TEMPERATURE: float = Field(default=0.2)  # Lower for more consistent JSON output
    MODEL_TIMEOUT_SECONDS: float = Field(default=60.0)
    MODEL_RETRY_ATTEMPTS: int = Field(default=2, ge=1)
    RATE_LIMIT_COOLDOWN_SECONDS: int = Field(default=60)

    # Analysis
    ANALYSIS_ENGINE: Literal["auto", "model", "heuristic"] = Field(default="auto")
    FALLBACK_TO_HEURISTIC: bool = Field(default=False)
    MIN_CODE_LENGTH: int = Field(default=10)
    MAX_CODE_LENGTH: int = Field(default=50_000)

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]
        if "*" in origins:
            return ["*"]
        return origins


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


# Logging setup
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("google").setLevel(logging.WARNING)

logger = logging.getLogger("code-review")
