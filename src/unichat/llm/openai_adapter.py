"""OpenAI-shaped chat completions adapter."""

from __future__ import annotations

import json
import logging
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
from unichat.llm.messages import JSONObject, Role, Text, ToolCall, UnifiedMessage
from unichat.llm.wire import OpenAIChatResponse
from unichat.tools.schema import ToolDescriptor

logger = logging.getLogger(__name__)


class OpenAIAdapter(ProviderAdapter):
    """Flat role+content messages; tool calls ride in a sibling ``tool_calls`` array."""

    kind = ProviderKind.OPENAI
    endpoint_path = "/chat/completions"

    def headers(self, config: ProviderConfig) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

    def format_messages(self, messages: Sequence[UnifiedMessage]) -> list[dict[str, Any]]:
        answered = answered_call_ids(messages)
        sent: set[str] = set()
        formatted: list[dict[str, Any]] = []
        last = len(messages) - 1

        for idx, message in enumerate(messages):
            if message.role in (Role.USER, Role.SYSTEM):
                formatted.append({"role": message.role.value, "content": message.text_content})

            elif message.role == Role.ASSISTANT:
                calls = live_tool_calls(message, answered, is_last=idx == last)
                text = message.text_content
                if not text and not calls:
                    continue
                entry: dict[str, Any] = {"role": "assistant", "content": text or None}
                if calls:
                    sent.update(call.id for call in calls)
                    entry["tool_calls"] = [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": serialize_arguments(call.arguments),
                            },
                        }
                        for call in calls
                    ]
                formatted.append(entry)

            else:
                # One wire message per result: OpenAI pairs exactly one
                # tool_call_id with each tool message.
                for result in paired_results(message, sent):
                    formatted.append(
                        {
                            "role": "tool",
                            "tool_call_id": result.tool_call_id,
                            "content": result.content,
                        }
                    )

        return formatted

    def format_tools(self, tools: Sequence[ToolDescriptor]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters.to_schema(),
                },
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
            "messages": self.format_messages(messages),
        }
        if tools:
            body["tools"] = self.format_tools(tools)
            body["tool_choice"] = "auto" if allow_tools else "none"
        body["max_tokens"] = config.max_tokens
        body["temperature"] = config.temperature
        return body

    def from_response(self, raw: dict[str, Any]) -> UnifiedMessage:
        try:
            response = OpenAIChatResponse.model_validate(raw)
        except ValidationError as exc:
            raise VendorParseError(self.name, str(exc)) from exc

        choice = response.choices[0]
        blocks: list[Text | ToolCall] = []
        if choice.message.content:
            blocks.append(Text(choice.message.content))
        for call in choice.message.tool_calls or []:
            blocks.append(
                ToolCall(
                    id=call.id,
                    name=call.function.name,
                    arguments=parse_arguments(call.function.arguments, call.function.name),
                )
            )

        return UnifiedMessage(
            role=Role.ASSISTANT,
            content=tuple(blocks),
            metadata={
                "provider": self.name,
                "model": response.model or "",
                "finish_reason": choice.finish_reason or "",
            },
        )


def serialize_arguments(arguments: JSONObject) -> str:
    return json.dumps(arguments, ensure_ascii=False, separators=(",", ":"))


def parse_arguments(raw: str, tool_name: str = "") -> JSONObject:
    """Decode a JSON-string argument payload; anything but an object becomes ``{}``."""
    if not raw or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed arguments for tool '%s': %s", tool_name, raw[:200])
        return {}
    if not isinstance(value, dict):
        logger.warning("Tool '%s' arguments are not a JSON object; using {}", tool_name)
        return {}
    return value
