"""Per-run scratchpad with tool-result compression.

At most ``max_tool_messages`` tool messages are kept verbatim. Past that, the
oldest ones (``compress_batch`` at a time) are folded into one synthetic
assistant message, so exact output of compressed results is not recallable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from unichat.config import ProviderConfig, ProviderKind
from unichat.llm.adapter import ProviderAdapter
from unichat.llm.messages import Role, ToolResult, UnifiedMessage
from unichat.llm.registry import adapter_for
from unichat.tools.schema import ToolDescriptor

logger = logging.getLogger(__name__)

SUMMARY_PREVIEW_CHARS = 100


@dataclass(frozen=True)
class ConversationStatistics:
    total_messages: int
    user_messages: int
    assistant_messages: int
    tool_calls: int
    tool_results: int
    compressed_summaries: int


class ContextManager:
    """Owns the ordered scratchpad for exactly one conversation."""

    def __init__(
        self,
        max_tool_messages: int = 4,
        compress_batch: int = 2,
        adapters: Mapping[ProviderKind, ProviderAdapter] | None = None,
    ) -> None:
        if max_tool_messages < 0:
            raise ValueError("max_tool_messages must be >= 0")
        if compress_batch < 1:
            raise ValueError("compress_batch must be >= 1")
        self.max_tool_messages = max_tool_messages
        self.compress_batch = compress_batch
        self._adapters = dict(adapters or {})
        self._scratchpad: list[UnifiedMessage] = []

    @property
    def messages(self) -> tuple[UnifiedMessage, ...]:
        return tuple(self._scratchpad)

    def __len__(self) -> int:
        return len(self._scratchpad)

    @property
    def tool_message_count(self) -> int:
        return sum(1 for m in self._scratchpad if m.role == Role.TOOL)

    # ── Mutation ────────────────────────────────────────────────────────────

    def add_user_message(self, text: str, metadata: Mapping[str, str] | None = None) -> UnifiedMessage:
        message = UnifiedMessage.user(text, metadata)
        self._scratchpad.append(message)
        logger.debug("Added user message to scratchpad")
        return message

    def add_message(self, message: UnifiedMessage) -> None:
        self._scratchpad.append(message)
        logger.debug("Added %s message to scratchpad", message.role.value)
        self.compress_if_needed()

    def add_tool_results(
        self,
        results: Sequence[ToolResult],
        metadata: Mapping[str, str] | None = None,
    ) -> UnifiedMessage:
        message = UnifiedMessage.tool(tuple(results), metadata)
        self._scratchpad.append(message)
        logger.debug("Added %d tool results to scratchpad", len(results))
        self.compress_if_needed()
        return message

    def clear(self) -> None:
        self._scratchpad.clear()
        logger.info("Cleared scratchpad")

    # ── Compression ─────────────────────────────────────────────────────────

    def compress_if_needed(self) -> bool:
        """Fold the oldest tool messages until the threshold holds.

        Returns True when anything was compressed. No-op at or below threshold.
        """
        compressed = False
        while self.tool_message_count > self.max_tool_messages:
            self._compress_oldest()
            compressed = True
        return compressed

    def _compress_oldest(self) -> None:
        batch_size = min(self.compress_batch, self.tool_message_count)
        batch: list[UnifiedMessage] = []
        rebuilt: list[UnifiedMessage] = []

        for message in self._scratchpad:
            if message.role == Role.TOOL and len(batch) < batch_size:
                batch.append(message)
                if len(batch) == batch_size:
                    rebuilt.append(self._summarize(batch))
            else:
                rebuilt.append(message)

        self._scratchpad = rebuilt
        logger.info("Compressed %d tool messages into summary", len(batch))

    @staticmethod
    def _summarize(batch: Sequence[UnifiedMessage]) -> UnifiedMessage:
        lines: list[str] = []
        for k, message in enumerate(batch, start=1):
            for result in message.tool_results:
                status = "failed" if result.is_error else "succeeded"
                preview = result.content[:SUMMARY_PREVIEW_CHARS]
                lines.append(f"Tool execution {k} {status}: {preview}")
        return UnifiedMessage.text_message(
            Role.ASSISTANT,
            "\n".join(lines),
            metadata={"compressed": "true", "original_count": str(len(batch))},
        )

    # ── Provider views ──────────────────────────────────────────────────────

    def _adapter(self, kind: ProviderKind) -> ProviderAdapter:
        return self._adapters.get(kind) or adapter_for(kind)

    def current_messages(self, kind: ProviderKind) -> list[dict[str, Any]]:
        """Wire-ready message array for *kind*."""
        return self._adapter(kind).format_messages(self._scratchpad)

    def build_request(
        self,
        tools: Sequence[ToolDescriptor],
        config: ProviderConfig,
        allow_tools: bool = True,
    ) -> dict[str, Any]:
        """Full vendor request body for the current scratchpad."""
        return self._adapter(config.provider).to_request(
            self._scratchpad, tools, config, allow_tools=allow_tools
        )

    # ── Introspection ───────────────────────────────────────────────────────

    @property
    def statistics(self) -> ConversationStatistics:
        return ConversationStatistics(
            total_messages=len(self._scratchpad),
            user_messages=sum(1 for m in self._scratchpad if m.role == Role.USER),
            assistant_messages=sum(1 for m in self._scratchpad if m.role == Role.ASSISTANT),
            tool_calls=sum(len(m.tool_calls) for m in self._scratchpad),
            tool_results=sum(len(m.tool_results) for m in self._scratchpad),
            compressed_summaries=sum(
                1 for m in self._scratchpad if m.metadata.get("compressed") == "true"
            ),
        )

    def export(self) -> dict[str, Any]:
        stats = self.statistics
        return {
            "messages": [m.to_dict() for m in self._scratchpad],
            "statistics": {
                "total_messages": stats.total_messages,
                "user_messages": stats.user_messages,
                "assistant_messages": stats.assistant_messages,
                "tool_calls": stats.tool_calls,
                "tool_results": stats.tool_results,
                "compressed_summaries": stats.compressed_summaries,
            },
            "export_date": datetime.now(timezone.utc).isoformat(),
        }
