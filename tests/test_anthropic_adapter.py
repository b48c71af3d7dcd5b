"""Tests for the Claude-shaped adapter."""

from __future__ import annotations

import pytest

from conftest import claude_reply
from unichat.config import ProviderConfig, ProviderKind
from unichat.llm.anthropic_adapter import AnthropicAdapter
from unichat.llm.errors import VendorParseError
from unichat.llm.messages import ToolCall, ToolResult, UnifiedMessage
from unichat.tools.schema import ParameterProperty, ToolDescriptor, ToolParameters


@pytest.fixture
def adapter() -> AnthropicAdapter:
    return AnthropicAdapter(api_version="2023-06-01")


@pytest.fixture
def config() -> ProviderConfig:
    return ProviderConfig(provider=ProviderKind.CLAUDE, api_key="sk-ant")


class TestClaudeRequest:
    def test_headers(self, adapter: AnthropicAdapter, config: ProviderConfig) -> None:
        headers = adapter.headers(config)
        assert headers["x-api-key"] == "sk-ant"
        assert headers["anthropic-version"] == "2023-06-01"

    def test_system_travels_out_of_band(self, adapter: AnthropicAdapter, config: ProviderConfig) -> None:
        messages = [
            UnifiedMessage.system("You are helpful."),
            UnifiedMessage.system("Be brief."),
            UnifiedMessage.user("hi"),
        ]
        body = adapter.to_request(messages, [], config)
        assert body["system"] == "You are helpful.\n\nBe brief."
        assert body["messages"] == [{"role": "user", "content": [{"type": "text", "text": "hi"}]}]
        assert "tools" not in body

    def test_request_key_order(self, adapter: AnthropicAdapter, config: ProviderConfig) -> None:
        tools = [ToolDescriptor(name="list_events", description="List")]
        body = adapter.to_request(
            [UnifiedMessage.system("s"), UnifiedMessage.user("hi")], tools, config
        )
        assert list(body) == ["model", "max_tokens", "temperature", "system", "messages", "tools"]

    def test_text_and_tool_use_share_one_assistant_message(self, adapter: AnthropicAdapter) -> None:
        call = ToolCall(id="toolu_1", name="list_events", arguments={"date": "today"})
        wire = adapter.format_messages(
            [UnifiedMessage.user("hi"), UnifiedMessage.assistant("Let me look.", tool_calls=[call])]
        )
        assert wire[1] == {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Let me look."},
                {"type": "tool_use", "id": "toolu_1", "name": "list_events", "input": {"date": "today"}},
            ],
        }

    def test_step_results_become_one_user_message(self, adapter: AnthropicAdapter) -> None:
        calls = [ToolCall(id="a", name="x"), ToolCall(id="b", name="y")]
        wire = adapter.format_messages(
            [
                UnifiedMessage.user("hi"),
                UnifiedMessage.assistant(tool_calls=calls),
                UnifiedMessage.tool([ToolResult("a", "ok"), ToolResult("b", "boom", is_error=True)]),
            ]
        )
        assert [m["role"] for m in wire] == ["user", "assistant", "user"]
        assert wire[2]["content"] == [
            {"type": "tool_result", "tool_use_id": "a", "content": "ok", "is_error": False},
            {"type": "tool_result", "tool_use_id": "b", "content": "boom", "is_error": True},
        ]

    def test_consecutive_same_role_messages_merge(self, adapter: AnthropicAdapter) -> None:
        wire = adapter.format_messages(
            [
                UnifiedMessage.user("hi"),
                UnifiedMessage.assistant(tool_calls=[ToolCall(id="a", name="x")]),
                UnifiedMessage.tool([ToolResult("a", "ok")]),
                UnifiedMessage.user("thanks, and tomorrow?"),
            ]
        )
        assert [m["role"] for m in wire] == ["user", "assistant", "user"]
        assert [b["type"] for b in wire[2]["content"]] == ["tool_result", "text"]

    def test_compression_summary_keeps_alternation(self, adapter: AnthropicAdapter) -> None:
        wire = adapter.format_messages(
            [
                UnifiedMessage.user("hi"),
                UnifiedMessage.assistant("first", tool_calls=[ToolCall(id="gone", name="x")]),
                UnifiedMessage.assistant("Tool execution 1 succeeded: ok"),
                UnifiedMessage.user("next"),
            ]
        )
        assert [m["role"] for m in wire] == ["user", "assistant", "user"]
        assert wire[1]["content"] == [
            {"type": "text", "text": "first"},
            {"type": "text", "text": "Tool execution 1 succeeded: ok"},
        ]

    def test_results_without_an_earlier_call_are_dropped(self, adapter: AnthropicAdapter) -> None:
        wire = adapter.format_messages(
            [
                UnifiedMessage.tool([ToolResult("toolu_0", "cut off")]),
                UnifiedMessage.assistant("m0"),
                UnifiedMessage.user("next"),
            ]
        )
        assert wire == [
            {"role": "assistant", "content": [{"type": "text", "text": "m0"}]},
            {"role": "user", "content": [{"type": "text", "text": "next"}]},
        ]

    def test_disallowed_tools_keep_catalog(
        self, adapter: AnthropicAdapter, config: ProviderConfig
    ) -> None:
        tool = ToolDescriptor(name="list_events", description="List events")
        messages = [
            UnifiedMessage.user("hi"),
            UnifiedMessage.assistant(tool_calls=[ToolCall(id="toolu_1", name="list_events")]),
            UnifiedMessage.tool([ToolResult("toolu_1", "nothing today")]),
        ]
        body = adapter.to_request(messages, [tool], config, allow_tools=False)
        assert body["tool_choice"] == {"type": "none"}
        assert [t["name"] for t in body["tools"]] == ["list_events"]

        allowed = adapter.to_request(messages, [tool], config)
        assert "tool_choice" not in allowed

    def test_format_tools_uses_input_schema(self, adapter: AnthropicAdapter) -> None:
        tool = ToolDescriptor(
            name="create_event",
            description="Create",
            parameters=ToolParameters(
                properties={"title": ParameterProperty(type="string")}, required=["title"]
            ),
        )
        assert adapter.format_tools([tool]) == [
            {
                "name": "create_event",
                "description": "Create",
                "input_schema": {
                    "type": "object",
                    "properties": {"title": {"type": "string"}},
                    "required": ["title"],
                    "additionalProperties": False,
                },
            }
        ]


class TestClaudeResponse:
    def test_text_and_tool_use(self, adapter: AnthropicAdapter) -> None:
        raw = claude_reply(
            {"type": "text", "text": "Checking your calendar."},
            {"type": "tool_use", "id": "toolu_1", "name": "list_events", "input": {"date": "tomorrow"}},
            stop_reason="tool_use",
        )
        msg = adapter.from_response(raw)
        assert msg.text_content == "Checking your calendar."
        assert msg.tool_calls == [
            ToolCall(id="toolu_1", name="list_events", arguments={"date": "tomorrow"})
        ]
        assert msg.metadata["stop_reason"] == "tool_use"
        assert adapter.extract_tool_calls(raw) == msg.tool_calls

    def test_unknown_blocks_are_ignored(self, adapter: AnthropicAdapter) -> None:
        msg = adapter.from_response(
            claude_reply({"type": "thinking", "thinking": "..."}, {"type": "text", "text": "Done"})
        )
        assert msg.text_content == "Done"
        assert len(msg.content) == 1

    def test_missing_content_is_parse_error(self, adapter: AnthropicAdapter) -> None:
        with pytest.raises(VendorParseError, match="claude"):
            adapter.from_response({"id": "msg_1", "type": "message"})

    def test_tool_use_without_input_is_parse_error(self, adapter: AnthropicAdapter) -> None:
        with pytest.raises(VendorParseError):
            adapter.from_response(claude_reply({"type": "tool_use", "id": "t", "name": "x"}))

    def test_round_trip_keeps_arguments_as_objects(
        self, adapter: AnthropicAdapter, config: ProviderConfig
    ) -> None:
        args = {"title": "Dentist", "reminders": [15, 60], "location": {"city": "Oslo"}}
        sent = UnifiedMessage.assistant(tool_calls=[ToolCall(id="toolu_9", name="create_event", arguments=args)])
        wire_msg = adapter.to_request([UnifiedMessage.user("hi"), sent], [], config)["messages"][1]

        decoded = adapter.from_response(claude_reply(*wire_msg["content"]))
        assert decoded.tool_calls[0].arguments == args
        assert isinstance(wire_msg["content"][0]["input"], dict)
