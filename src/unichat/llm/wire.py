"""Pydantic models validating vendor response payloads.

Only the fields the adapters read are declared; everything else is ignored.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ── OpenAI-shaped ───────────────────────────────────────────────────────────


class OpenAIFunction(_Wire):
    name: str
    arguments: str = "{}"


class OpenAIToolCall(_Wire):
    id: str
    type: str = "function"
    function: OpenAIFunction


class OpenAIMessage(_Wire):
    role: str = "assistant"
    content: str | None = None
    tool_calls: list[OpenAIToolCall] | None = None


class OpenAIChoice(_Wire):
    index: int = 0
    message: OpenAIMessage
    finish_reason: str | None = None


class OpenAIChatResponse(_Wire):
    id: str | None = None
    model: str | None = None
    choices: list[OpenAIChoice] = Field(min_length=1)
    usage: dict[str, Any] | None = None


# ── Claude-shaped ───────────────────────────────────────────────────────────


class ClaudeContentBlock(_Wire):
    type: str
    text: str | None = None
    id: str | None = None
    name: str | None = None
    input: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _check_required_fields(self) -> ClaudeContentBlock:
        if self.type == "text" and self.text is None:
            raise ValueError("text block without 'text'")
        if self.type == "tool_use":
            missing = [f for f in ("id", "name", "input") if getattr(self, f) is None]
            if missing:
                raise ValueError(f"tool_use block missing {', '.join(missing)}")
        return self


class ClaudeMessagesResponse(_Wire):
    id: str | None = None
    model: str | None = None
    content: list[ClaudeContentBlock]
    stop_reason: str | None = None
    usage: dict[str, Any] | None = None
