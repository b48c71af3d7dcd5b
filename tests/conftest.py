"""Shared fixtures: fake tool providers and vendor reply builders."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from unichat.config import ProviderConfig, ProviderKind
from unichat.tools.gateway import ToolGateway
from unichat.tools.provider import FunctionToolProvider, ToolOutcome
from unichat.tools.schema import ParameterProperty, ToolDescriptor, ToolParameters


# ---------------------------------------------------------------------------
# Vendor reply builders
# ---------------------------------------------------------------------------

def openai_text(text: str) -> dict[str, Any]:
    return {
        "id": "chatcmpl-1",
        "model": "gpt-4o-mini",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": "stop",
            }
        ],
    }


def openai_tool_calls(*calls: tuple[str, str, dict], text: str | None = None) -> dict[str, Any]:
    return {
        "id": "chatcmpl-2",
        "model": "gpt-4o-mini",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": text,
                    "tool_calls": [
                        {
                            "id": call_id,
                            "type": "function",
                            "function": {"name": name, "arguments": json.dumps(args)},
                        }
                        for call_id, name, args in calls
                    ],
                },
                "finish_reason": "tool_calls",
            }
        ],
    }


def claude_reply(*blocks: dict[str, Any], stop_reason: str = "end_turn") -> dict[str, Any]:
    return {
        "id": "msg_1",
        "model": "claude-sonnet-4-5-20250929",
        "content": list(blocks),
        "stop_reason": stop_reason,
    }


# ---------------------------------------------------------------------------
# Tool providers
# ---------------------------------------------------------------------------

def _descriptor(name: str, description: str, **props: str) -> ToolDescriptor:
    return ToolDescriptor(
        name=name,
        description=description,
        parameters=ToolParameters(
            properties={k: ParameterProperty(type="string", description=v) for k, v in props.items()},
        ),
    )


class ToolCallLog:
    """Records which tools actually ran, in completion order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def tool_log() -> ToolCallLog:
    return ToolCallLog()


@pytest.fixture
def calendar(tool_log: ToolCallLog) -> FunctionToolProvider:
    provider = FunctionToolProvider("calendar")

    async def list_events(args: dict) -> ToolOutcome:
        await asyncio.sleep(0.02)
        tool_log.calls.append(("list_events", args))
        return ToolOutcome(message="Dentist at 10:00; Standup at 11:00")

    async def create_event(args: dict) -> ToolOutcome:
        tool_log.calls.append(("create_event", args))
        return ToolOutcome(
            message=f"Created event '{args.get('title', '')}'",
            metadata={
                "action": "created",
                "eventId": "evt-1",
                "eventTitle": str(args.get("title", "")),
                "startTimestamp": "1767261600",
            },
        )

    async def delete_event(args: dict) -> ToolOutcome:
        tool_log.calls.append(("delete_event", args))
        return ToolOutcome(message=f"Deleted event '{args.get('title', '')}'")

    async def update_event(args: dict) -> ToolOutcome:
        tool_log.calls.append(("update_event", args))
        return ToolOutcome(message="Updated event")

    provider.register(_descriptor("list_events", "List calendar events", date="ISO date"), list_events)
    provider.register(_descriptor("create_event", "Create an event", title="Title"), create_event)
    provider.register(_descriptor("delete_event", "Delete an event", title="Title"), delete_event)
    provider.register(_descriptor("update_event", "Update an event", event_id="Id"), update_event)
    return provider


@pytest.fixture
def reminders(tool_log: ToolCallLog) -> FunctionToolProvider:
    provider = FunctionToolProvider("reminders")

    async def list_reminders(args: dict) -> ToolOutcome:
        tool_log.calls.append(("list_reminders", args))
        return ToolOutcome(message="Buy milk")

    async def complete_reminder(args: dict) -> ToolOutcome:
        tool_log.calls.append(("complete_reminder", args))
        return ToolOutcome(message="Completed")

    async def share_reminder(args: dict) -> ToolOutcome:
        tool_log.calls.append(("share_reminder", args))
        return ToolOutcome(message="Permission denied", is_error=True)

    provider.register(_descriptor("list_reminders", "List reminders"), list_reminders)
    provider.register(_descriptor("complete_reminder", "Complete a reminder", title="Title"), complete_reminder)
    provider.register(_descriptor("share_reminder", "Share a reminder", title="Title"), share_reminder)
    return provider


@pytest.fixture
def gateway(calendar: FunctionToolProvider, reminders: FunctionToolProvider) -> ToolGateway:
    return ToolGateway(providers=[calendar, reminders], timeout_seconds=2.0)


@pytest.fixture
def openai_config() -> ProviderConfig:
    return ProviderConfig(provider=ProviderKind.OPENAI, api_key="sk-test")


@pytest.fixture
def claude_config() -> ProviderConfig:
    return ProviderConfig(provider=ProviderKind.CLAUDE, api_key="sk-ant-test")
