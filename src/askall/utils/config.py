"""Configuration management for askall.

Handles API keys, default models and request settings using Pydantic Settings.
Supports environment variables and .env files.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from askall.core.models import ProviderName


class Settings(BaseSettings):
    """Application settings.

    Provider credentials use the vendors' conventional variable names.
    Everything else can be overridden via environment variables with the
    ASKALL_ prefix.

    Example .env file:
        OPENAI_API_KEY=sk-...
        ANTHROPIC_API_KEY=sk-ant-...
        GEMINI_API_KEY=...
        ASKALL_OPENAI_MODEL=gpt-4o-mini
        ASKALL_PORT=3000
    """

    # LLM API Keys
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
    )

    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key",
        validation_alias=AliasChoices("ANTHROPIC_API_KEY", "anthropic_api_key"),
    )

    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key (GOOGLE_API_KEY accepted as fallback)",
        validation_alias=AliasChoices("GEMINI_API_KEY", "gemini_api_key"),
    )

    google_api_key: str | None = Field(
        default=None,
        description="Fallback Gemini key, used when GEMINI_API_KEY is unset or blank",
        validation_alias=AliasChoices("GOOGLE_API_KEY", "google_api_key"),
    )

    # Default models
    openai_model: str = Field(default="gpt-5-mini-2025-08-07", description="Default OpenAI model")
    claude_model: str = Field(default="claude-3-5-sonnet-latest", description="Default Claude model")
    gemini_model: str = Field(default="gemini-1.5-flash", description="Default Gemini model")

    # Sampling defaults
    default_temperature: float = Field(
        default=0.2, description="Default temperature for LLM calls", ge=0.0, le=2.0
    )
    default_max_tokens: int = Field(
        default=1024, description="Default max output tokens for LLM calls", gt=0
    )

    # Request Settings
    request_timeout_ms: int = Field(
        default=30000, description="Per-provider timeout for CLI requests (ms)", gt=0
    )
    attempt_timeout_ms: int = Field(
        default=5000, description="Per-attempt timeout for HTTP requests (ms)", gt=0
    )
    max_attempts: int = Field(
        default=3, description="Attempts per provider before giving up", ge=1
    )

    # Files
    config_dir: Path = Field(
        default=Path("config"), description="Directory with per-provider override JSON files"
    )
    public_dir: Path = Field(default=Path("public"), description="Static web UI directory")

    # Server
    host: str = Field(default="127.0.0.1", description="HTTP bind address")
    port: int = Field(default=3000, description="HTTP port", gt=0, lt=65536)
    usage_log_size: int = Field(default=100, description="Usage log capacity", gt=0)

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ASKALL_",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _fallback_gemini_key(self) -> Settings:
        # An empty GEMINI_API_KEY= must not hide a real GOOGLE_API_KEY
        if not self.gemini_api_key and self.google_api_key:
            self.gemini_api_key = self.google_api_key
        return self

    def credential_for(self, provider: ProviderName) -> str | None:
        """Get the API key for a provider (None or empty when unset)."""
        if provider is ProviderName.OPENAI:
            return self.openai_api_key
        if provider is ProviderName.CLAUDE:
            return self.anthropic_api_key
        return self.gemini_api_key

    def has_credential(self, provider: ProviderName) -> bool:
        """Whether a provider has a non-empty API key configured."""
        return bool(self.credential_for(provider))

    def default_model_for(self, provider: ProviderName) -> str:
        """Get the default model for a provider."""
        if provider is ProviderName.OPENAI:
            return self.openai_model
        if provider is ProviderName.CLAUDE:
            return self.claude_model
        return self.gemini_model

    def enabled_providers(self) -> dict[str, bool]:
        """Credential availability per provider, as reported by the API."""
        return {provider.value: self.has_credential(provider) for provider in ProviderName}


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
