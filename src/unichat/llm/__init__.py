"""LLM layer — unified messages and provider adapters."""

from unichat.llm.adapter import ProviderAdapter
from unichat.llm.anthropic_adapter import AnthropicAdapter
from unichat.llm.client import ChatClient
from unichat.llm.errors import (
    VendorError,
    VendorHttpError,
    VendorParseError,
    VendorTransportError,
)
from unichat.llm.messages import (
    ContentBlock,
    Role,
    Text,
    ToolCall,
    ToolResult,
    UnifiedMessage,
)
from unichat.llm.openai_adapter import OpenAIAdapter
from unichat.llm.registry import adapter_for, default_adapters

__all__ = [
    "AnthropicAdapter",
    "ChatClient",
    "ContentBlock",
    "OpenAIAdapter",
    "ProviderAdapter",
    "Role",
    "Text",
    "ToolCall",
    "ToolResult",
    "UnifiedMessage",
    "VendorError",
    "VendorHttpError",
    "VendorParseError",
    "VendorTransportError",
    "adapter_for",
    "default_adapters",
]
