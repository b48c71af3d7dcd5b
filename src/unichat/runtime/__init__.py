"""Agent Runtime — ReAct loop and run state machine."""

from unichat.runtime.agent import (
    FINAL_RESPONSE_MARKER,
    AgentCancelled,
    AgentResult,
    AgentRunError,
    ConsecutiveToolErrors,
    Orchestrator,
    VendorCallFailed,
    render_artifact_marker,
)
from unichat.runtime.records import AgentStep, ToolExecution
from unichat.runtime.state import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    RunState,
    RunStateMachine,
)

__all__ = [
    "AgentCancelled",
    "AgentResult",
    "AgentRunError",
    "AgentStep",
    "ConsecutiveToolErrors",
    "FINAL_RESPONSE_MARKER",
    "Orchestrator",
    "RunState",
    "RunStateMachine",
    "TERMINAL_STATES",
    "ToolExecution",
    "VALID_TRANSITIONS",
    "VendorCallFailed",
    "render_artifact_marker",
]
