"""Adapter lookup by provider kind."""

from __future__ import annotations

from unichat.config import ProviderKind
from unichat.llm.adapter import ProviderAdapter
from unichat.llm.anthropic_adapter import AnthropicAdapter
from unichat.llm.openai_adapter import OpenAIAdapter


def default_adapters(anthropic_version: str = "2023-06-01") -> dict[ProviderKind, ProviderAdapter]:
    return {
        ProviderKind.OPENAI: OpenAIAdapter(),
        ProviderKind.CLAUDE: AnthropicAdapter(api_version=anthropic_version),
    }


_DEFAULT = default_adapters()


def adapter_for(kind: ProviderKind) -> ProviderAdapter:
    """Return the shared stateless adapter for *kind*."""
    adapter = _DEFAULT.get(kind)
    if adapter is None:
        raise ValueError(f"No adapter registered for provider '{kind}'")
    return adapter
