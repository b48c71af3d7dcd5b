"""Vendor-neutral conversation model shared by every provider adapter."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Union

# Generic JSON value: null | bool | number | string | array | object.
JSONValue = Union[None, bool, int, float, str, List["JSONValue"], Dict[str, "JSONValue"]]
JSONObject = Dict[str, JSONValue]


class Role(Enum):
    """Conversation roles."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


# ── Content blocks ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class ToolCall:
    """A model-requested function invocation."""

    id: str
    name: str
    arguments: JSONObject = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """Output of running a tool, paired with the call by ``tool_call_id``."""

    tool_call_id: str
    content: str
    is_error: bool = False


ContentBlock = Union[Text, ToolCall, ToolResult]


# ── Message ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class UnifiedMessage:
    """A single conversation turn.

    ``content`` keeps emission order: text and tool calls interleave exactly
    as the model produced them.
    """

    role: Role
    content: tuple[ContentBlock, ...] = ()
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", tuple(self.content))
        _check_content(self.role, self.content)

    @classmethod
    def user(cls, text: str, metadata: Mapping[str, str] | None = None) -> UnifiedMessage:
        return cls.text_message(Role.USER, text, metadata)

    @classmethod
    def system(cls, text: str, metadata: Mapping[str, str] | None = None) -> UnifiedMessage:
        return cls.text_message(Role.SYSTEM, text, metadata)

    @classmethod
    def text_message(
        cls, role: Role, text: str, metadata: Mapping[str, str] | None = None
    ) -> UnifiedMessage:
        return cls(role=role, content=(Text(text),), metadata=dict(metadata or {}))

    @classmethod
    def assistant(
        cls,
        text: str = "",
        tool_calls: list[ToolCall] | tuple[ToolCall, ...] = (),
        metadata: Mapping[str, str] | None = None,
    ) -> UnifiedMessage:
        blocks: list[ContentBlock] = []
        if text:
            blocks.append(Text(text))
        blocks.extend(tool_calls)
        return cls(role=Role.ASSISTANT, content=tuple(blocks), metadata=dict(metadata or {}))

    @classmethod
    def tool(
        cls,
        results: list[ToolResult] | tuple[ToolResult, ...],
        metadata: Mapping[str, str] | None = None,
    ) -> UnifiedMessage:
        return cls(role=Role.TOOL, content=tuple(results), metadata=dict(metadata or {}))

    @property
    def text_content(self) -> str:
        """All text blocks, newline-joined."""
        return "\n".join(b.text for b in self.content if isinstance(b, Text))

    @property
    def tool_calls(self) -> list[ToolCall]:
        return [b for b in self.content if isinstance(b, ToolCall)]

    @property
    def tool_results(self) -> list[ToolResult]:
        return [b for b in self.content if isinstance(b, ToolResult)]

    @property
    def has_tool_calls(self) -> bool:
        return any(isinstance(b, ToolCall) for b in self.content)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation used for export and debugging."""
        return {
            "id": self.id,
            "role": self.role.value,
            "content": [block_to_dict(b) for b in self.content],
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }


def block_to_dict(block: ContentBlock) -> dict[str, Any]:
    if isinstance(block, Text):
        return {"type": "text", "text": block.text}
    if isinstance(block, ToolCall):
        return {
            "type": "tool_call",
            "id": block.id,
            "name": block.name,
            "arguments": block.arguments,
        }
    return {
        "type": "tool_result",
        "tool_call_id": block.tool_call_id,
        "content": block.content,
        "is_error": block.is_error,
    }


def _check_content(role: Role, content: tuple[ContentBlock, ...]) -> None:
    """Enforce which block kinds each role may carry."""
    for block in content:
        if not isinstance(block, (Text, ToolCall, ToolResult)):
            raise TypeError(f"Unsupported content block: {type(block).__name__}")
        if role == Role.TOOL and not isinstance(block, ToolResult):
            raise ValueError("tool messages may only contain ToolResult blocks")
        if role in (Role.USER, Role.SYSTEM) and not isinstance(block, Text):
            raise ValueError(f"{role.value} messages may only contain Text blocks")
        if role == Role.ASSISTANT and isinstance(block, ToolResult):
            raise ValueError("assistant messages cannot contain ToolResult blocks")
