"""Per-step audit records returned to callers."""

from __future__ import annotations

from dataclasses import dataclass

from unichat.llm.messages import JSONObject


@dataclass(frozen=True)
class ToolExecution:
    tool_name: str
    arguments: JSONObject
    result_text: str
    is_error: bool
    duration_ms: int


@dataclass(frozen=True)
class AgentStep:
    """One orchestrator iteration. Never read back by the loop itself."""

    step_number: int
    assistant_text: str
    tool_executions: tuple[ToolExecution, ...] = ()

    @property
    def has_errors(self) -> bool:
        return any(t.is_error for t in self.tool_executions)
