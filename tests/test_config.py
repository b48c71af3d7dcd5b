"""Tests for provider configuration and env-backed settings."""

from __future__ import annotations

import pytest

from unichat.config import ProviderConfig, ProviderKind, Settings, TerminationStrategy


class TestProviderConfig:
    def test_empty_model_resolves_to_provider_default(self) -> None:
        config = ProviderConfig(provider=ProviderKind.CLAUDE, api_key="k")
        assert config.model == "claude-sonnet-4-5-20250929"
        assert config.max_tokens == 1000
        assert config.temperature == 0.7

    def test_endpoint_base_prefers_override(self) -> None:
        config = ProviderConfig(provider=ProviderKind.OPENAI, api_key="k", base_url="http://proxy.local/v1/")
        assert config.endpoint_base == "http://proxy.local/v1"
        assert ProviderConfig(ProviderKind.OPENAI, "k").endpoint_base == "https://api.openai.com/v1"

    def test_with_model_returns_copy(self) -> None:
        config = ProviderConfig(provider=ProviderKind.OPENAI, api_key="k")
        other = config.with_model("gpt-4o")
        assert other.model == "gpt-4o"
        assert config.model == "gpt-4o-mini"

    def test_is_immutable(self) -> None:
        config = ProviderConfig(provider=ProviderKind.OPENAI, api_key="k")
        with pytest.raises(AttributeError):
            config.api_key = "other"  # type: ignore[misc]


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.provider is ProviderKind.OPENAI
        assert settings.max_steps == 5
        assert settings.max_tool_messages == 4
        assert settings.termination is TerminationStrategy.NO_TOOL_CALLS
        assert settings.anthropic_version == "2023-06-01"
        assert settings.parallel_tool_calls is True

    def test_loads_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UNICHAT_PROVIDER", "claude")
        monkeypatch.setenv("UNICHAT_ANTHROPIC_API_KEY", "sk-ant")
        monkeypatch.setenv("UNICHAT_MAX_STEPS", "8")
        monkeypatch.setenv("UNICHAT_TERMINATION", "final_marker")
        settings = Settings(_env_file=None)

        assert settings.provider is ProviderKind.CLAUDE
        assert settings.max_steps == 8
        assert settings.termination is TerminationStrategy.FINAL_MARKER

        config = settings.provider_config()
        assert config.provider is ProviderKind.CLAUDE
        assert config.api_key == "sk-ant"
        assert config.model == ProviderKind.CLAUDE.default_model
        assert config.base_url is None

    def test_provider_config_requires_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("UNICHAT_OPENAI_API_KEY", raising=False)
        settings = Settings(_env_file=None, provider=ProviderKind.OPENAI)
        with pytest.raises(ValueError, match="No API key"):
            settings.provider_config()

    def test_base_url_override(self) -> None:
        settings = Settings(
            _env_file=None,
            openai_api_key="sk",
            openai_base_url="http://localhost:8080/v1",
            model="gpt-4o",
        )
        config = settings.provider_config()
        assert config.endpoint_base == "http://localhost:8080/v1"
        assert config.model == "gpt-4o"
