"""Claude-shaped Messages API adapter."""

from __future__ import annotations

from typing import Any, Sequence

from pydantic import ValidationError

from unichat.config import ProviderConfig, ProviderKind
from unichat.llm.adapter import (
    ProviderAdapter,
    answered_call_ids,
    live_tool_calls,
    paired_results,
)
from unichat.llm.errors import VendorParseError
from unichat.llm.messages import Role, Text, ToolCall, UnifiedMessage
from unichat.llm.wire import ClaudeMessagesResponse
from unichat.tools.schema import ToolDescriptor


class AnthropicAdapter(ProviderAdapter):
    """Tool calls and tool results are content blocks; ``system`` travels out-of-band."""

    kind = ProviderKind.CLAUDE
    endpoint_path = "/messages"

    def __init__(self, api_version: str = "2023-06-01") -> None:
        self.api_version = api_version

    def headers(self, config: ProviderConfig) -> dict[str, str]:
        return {
            "x-api-key": config.api_key,
            "anthropic-version": self.api_version,
            "content-type": "application/json",
        }

    def _extract_system(self, messages: Sequence[UnifiedMessage]) -> str | None:
        """Join all system message text; None when there is none."""
        parts = [m.text_content for m in messages if m.role == Role.SYSTEM and m.text_content]
        return "\n\n".join(parts) if parts else None

    def format_messages(self, messages: Sequence[UnifiedMessage]) -> list[dict[str, Any]]:
        answered = answered_call_ids(messages)
        sent: set[str] = set()
        formatted: list[dict[str, Any]] = []
        last = len(messages) - 1

        for idx, message in enumerate(messages):
            if message.role == Role.SYSTEM:
                continue

            if message.role == Role.USER:
                role = "user"
                content = [{"type": "text", "text": message.text_content}]

            elif message.role == Role.ASSISTANT:
                role = "assistant"
                live = {c.id for c in live_tool_calls(message, answered, is_last=idx == last)}
                sent.update(live)
                content = []
                for block in message.content:
                    if isinstance(block, Text):
                        if block.text:
                            content.append({"type": "text", "text": block.text})
                    elif isinstance(block, ToolCall) and block.id in live:
                        content.append(
                            {
                                "type": "tool_use",
                                "id": block.id,
                                "name": block.name,
                                "input": block.arguments,
                            }
                        )

            else:
                # All results of a step go back as one user message.
                role = "user"
                content = [
                    {
                        "type": "tool_result",
                        "tool_use_id": result.tool_call_id,
                        "content": result.content,
                        "is_error": result.is_error,
                    }
                    for result in paired_results(message, sent)
                ]

            if not content:
                continue
            # Claude requires strict user/assistant alternation.
            if formatted and formatted[-1]["role"] == role:
                formatted[-1]["content"].extend(content)
            else:
                formatted.append({"role": role, "content": content})

        return formatted

    def format_tools(self, tools: Sequence[ToolDescriptor]) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters.to_schema(),
            }
            for tool in tools
        ]

    def to_request(
        self,
        messages: Sequence[UnifiedMessage],
        tools: Sequence[ToolDescriptor],
        config: ProviderConfig,
        allow_tools: bool = True,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": config.model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }
        system_text = self._extract_system(messages)
        if system_text:
            body["system"] = system_text
        body["messages"] = self.format_messages(messages)
        if tools:
            body["tools"] = self.format_tools(tools)
            if not allow_tools:
                body["tool_choice"] = {"type": "none"}
        return body

    def from_response(self, raw: dict[str, Any]) -> UnifiedMessage:
        try:
            response = ClaudeMessagesResponse.model_validate(raw)
        except ValidationError as exc:
            raise VendorParseError(self.name, str(exc)) from exc

        blocks: list[Text | ToolCall] = []
        for block in response.content:
            if block.type == "text":
                blocks.append(Text(block.text or ""))
            elif block.type == "tool_use":
                blocks.append(
                    ToolCall(
                        id=block.id or "",
                        name=block.name or "",
                        arguments=dict(block.input or {}),
                    )
                )

        return UnifiedMessage(
            role=Role.ASSISTANT,
            content=tuple(blocks),
            metadata={
                "provider": self.name,
                "model": response.model or "",
                "stop_reason": response.stop_reason or "",
            },
        )
