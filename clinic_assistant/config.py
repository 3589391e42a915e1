"""Configuration management for the clinic assistant."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Record store
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/clinic.db",
        description="SQLAlchemy async URL for the clinic record store",
    )

    # Intent classification
    classifier_backend: Literal["keyword", "llm"] = Field(
        default="keyword",
        description="Which intent classifier answers chat messages",
    )
    llm_primary: Literal["gemini", "local"] = Field(
        default="gemini",
        description="Primary model provider when the llm backend is selected",
    )

    # Google Gemini
    gemini_api_key: str = Field(default="", description="Google AI Studio API key")
    gemini_model: str = Field(default="gemini-2.5-flash")

    # Local LLM (OpenAI-compatible server)
    local_llm_base_url: str = Field(
        default="http://localhost:8000/v1",
        description="OpenAI-compatible endpoint for local LLM",
    )
    local_llm_model: str = Field(default="meta-llama/Llama-3.1-8B-Instruct")
    local_llm_timeout: int = Field(
        default=30,
        description="Timeout in seconds for local LLM requests",
    )

    # Anthropic Claude (fallback)
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key for the fallback classifier model",
    )
    anthropic_model: str = Field(default="claude-sonnet-4-20250514")

    max_retries: int = Field(default=3, description="Max retries for LLM calls")

    # Clinic
    clinic_timezone: str = Field(
        default="Europe/Istanbul",
        description="Timezone used for 'now' when computing slot availability",
    )
    default_clinic_name: str = Field(
        default="Merkez Klinik",
        description="Display label when a clinic lookup fails",
    )

    # Observability
    observability_enabled: bool = Field(default=True)
    observability_log_dir: Path = Field(default=Path("data/logs"))

    # API Settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8080)
    api_key: str = Field(
        default="",
        description="API key for authenticating requests",
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:8081", "http://localhost:19006"],
        description="Allowed CORS origins",
    )

    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode (exposes error details in responses)",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    @property
    def has_gemini_key(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_anthropic_key(self) -> bool:
        """Check if Anthropic API key is configured."""
        return bool(self.anthropic_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
