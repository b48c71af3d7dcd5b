"""Provider configuration and environment-backed settings."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from pydantic_settings import BaseSettings


class ProviderKind(Enum):
    """Supported vendor wire protocols."""

    OPENAI = "openai"
    CLAUDE = "claude"

    @property
    def base_url(self) -> str:
        if self is ProviderKind.OPENAI:
            return "https://api.openai.com/v1"
        return "https://api.anthropic.com/v1"

    @property
    def default_model(self) -> str:
        if self is ProviderKind.OPENAI:
            return "gpt-4o-mini"
        return "claude-sonnet-4-5-20250929"


class TerminationStrategy(Enum):
    """How the loop recognizes the model's final answer."""

    NO_TOOL_CALLS = "no_tool_calls"
    FINAL_MARKER = "final_marker"


@dataclass(frozen=True)
class ProviderConfig:
    """Per-call API configuration. Passed by value, never mutated by the core."""

    provider: ProviderKind
    api_key: str
    model: str = ""
    max_tokens: int = 1000
    temperature: float = 0.7
    base_url: str | None = None

    def __post_init__(self) -> None:
        if not self.model:
            object.__setattr__(self, "model", self.provider.default_model)

    @property
    def endpoint_base(self) -> str:
        return (self.base_url or self.provider.base_url).rstrip("/")

    def with_model(self, model: str) -> ProviderConfig:
        return replace(self, model=model)


class Settings(BaseSettings):
    """All configuration loaded from env vars (``UNICHAT_*``) or .env file."""

    provider: ProviderKind = ProviderKind.OPENAI
    model: str = ""
    max_tokens: int = 1000
    temperature: float = 0.7

    # Credentials
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # Endpoints
    openai_base_url: str = ""
    anthropic_base_url: str = ""
    anthropic_version: str = "2023-06-01"
    request_timeout: float = 60.0

    # Loop behaviour
    max_steps: int = 5
    max_tool_messages: int = 4
    termination: TerminationStrategy = TerminationStrategy.NO_TOOL_CALLS

    # Tool execution
    tool_timeout_seconds: float = 30.0
    parallel_tool_calls: bool = True

    log_level: str = "INFO"

    model_config = {
        "env_prefix": "UNICHAT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def provider_config(self) -> ProviderConfig:
        """Build the ProviderConfig for the selected provider."""
        if self.provider is ProviderKind.OPENAI:
            api_key, base_url = self.openai_api_key, self.openai_base_url
        else:
            api_key, base_url = self.anthropic_api_key, self.anthropic_base_url
        if not api_key:
            raise ValueError(f"No API key configured for provider '{self.provider.value}'")
        return ProviderConfig(
            provider=self.provider,
            api_key=api_key,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            base_url=base_url or None,
        )
