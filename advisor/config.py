from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=3000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    cors_allowed_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to open a socket connection",
    )
    welcome_message: str = Field(
        default="What can I do for you today?",
        description="Greeting emitted on every new socket connection",
    )

    # LLM Provider Settings
    llm_provider: str = Field(default="gaia", description="Default LLM provider")
    llm_base_url: str = Field(
        default="",
        description="Override the provider's default chat completions base URL",
    )
    gaia_api_key: str = Field(default="", description="Gaia node API key")
    openai_api_key: str = Field(default="", description="OpenAI API key")
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key",
        validation_alias=AliasChoices("anthropic_api_key", "claude_api_key"),
    )

    # LLM Configuration
    detailed_model: str = Field(
        default="Llama-3.2-3B-Instruct",
        description="Model used when (re)introducing wallet context",
    )
    detailed_max_tokens: int = Field(
        default=1000,
        ge=1,
        description="Response budget for wallet summaries",
    )
    quick_model: str = Field(
        default="Llama-3.2-3B-Instruct",
        description="Model used for follow-up chat turns",
    )
    quick_max_tokens: int = Field(
        default=150,
        ge=1,
        description="Response budget for follow-up chat turns",
    )
    temperature: float = Field(default=0.7, description="LLM temperature setting")
    request_timeout_seconds: float = Field(default=30.0, description="Model provider request timeout")
    max_retries: int = Field(default=2, ge=0, description="Retries for transient provider failures")

    # News Provider Settings
    cryptopanic_news_api_key: str = Field(
        default="",
        description="CryptoPanic API token",
        validation_alias=AliasChoices("cryptopanic_news_api_key", "cryptopanic_api_key"),
    )
    cryptopanic_base_url: str = Field(
        default="https://cryptopanic.com/api/v1",
        description="CryptoPanic API base URL",
    )
    news_poll_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Interval between pushes for news subscribers",
    )
    news_headline_count: int = Field(
        default=12,
        ge=1,
        description="Number of headlines fed into market analysis",
    )

    @model_validator(mode="after")
    def _check_turn_budgets(self) -> "Settings":
        if self.detailed_max_tokens <= self.quick_max_tokens:
            raise ValueError(
                "detailed_max_tokens must be larger than quick_max_tokens "
                f"({self.detailed_max_tokens} <= {self.quick_max_tokens})"
            )
        return self

    @property
    def has_gaia_key(self) -> bool:
        return bool(self.gaia_api_key)

    @property
    def has_openai_key(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def has_anthropic_key(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def has_news_key(self) -> bool:
        return bool(self.cryptopanic_news_api_key)

    @property
    def has_llm_key(self) -> bool:
        """Check if we have an API key for the configured LLM provider"""
        provider = self.llm_provider.lower()
        if provider in ["gaia"]:
            return self.has_gaia_key
        elif provider in ["openai", "gpt"]:
            return self.has_openai_key
        elif provider in ["anthropic", "claude"]:
            return self.has_anthropic_key
        return False


# Global settings instance
settings = Settings()
