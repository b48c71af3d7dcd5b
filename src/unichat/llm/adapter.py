"""Provider adapter contract: unified model <-> vendor request/response JSON."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from unichat.config import ProviderConfig, ProviderKind
from unichat.llm.messages import Role, ToolCall, ToolResult, UnifiedMessage
from unichat.tools.schema import ToolDescriptor


class ProviderAdapter(ABC):
    """Bidirectional translator between UnifiedMessage and one vendor's wire format.

    Adapters are stateless; business-level tool errors pass through them as
    ordinary ``is_error`` tool results.
    """

    kind: ProviderKind
    endpoint_path: str

    @property
    def name(self) -> str:
        return self.kind.value

    @abstractmethod
    def headers(self, config: ProviderConfig) -> dict[str, str]:
        """Authentication and protocol headers for one request."""

    @abstractmethod
    def format_messages(self, messages: Sequence[UnifiedMessage]) -> list[dict[str, Any]]:
        """Wire-ready message array for the scratchpad."""

    @abstractmethod
    def format_tools(self, tools: Sequence[ToolDescriptor]) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def to_request(
        self,
        messages: Sequence[UnifiedMessage],
        tools: Sequence[ToolDescriptor],
        config: ProviderConfig,
        allow_tools: bool = True,
    ) -> dict[str, Any]:
        """Full request body.

        With ``allow_tools=False`` the catalog is still sent but the model is
        told not to call any tool.
        """

    @abstractmethod
    def from_response(self, raw: dict[str, Any]) -> UnifiedMessage:
        """Decode a vendor reply into an assistant message.

        Raises VendorParseError when required fields are missing or malformed.
        """

    def extract_tool_calls(self, raw: dict[str, Any]) -> list[ToolCall]:
        return self.from_response(raw).tool_calls


def answered_call_ids(messages: Sequence[UnifiedMessage]) -> set[str]:
    """Ids of every tool call that has a result somewhere in *messages*."""
    return {
        result.tool_call_id
        for message in messages
        if message.role == Role.TOOL
        for result in message.tool_results
    }


def live_tool_calls(
    message: UnifiedMessage, answered: set[str], is_last: bool
) -> list[ToolCall]:
    """Tool calls that can be sent on the wire.

    A call whose result was folded into a compression summary has no result
    left to pair with, so it is dropped. Calls on the trailing message are
    kept as-is.
    """
    if is_last:
        return message.tool_calls
    return [call for call in message.tool_calls if call.id in answered]


def paired_results(message: UnifiedMessage, sent_call_ids: set[str]) -> list[ToolResult]:
    """Tool results whose call was already sent on the wire.

    A history window can start between a call and its result; both vendors
    reject a result that has no earlier call.
    """
    return [r for r in message.tool_results if r.tool_call_id in sent_call_ids]
