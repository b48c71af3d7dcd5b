"""Run state machine for one orchestrator turn."""

from __future__ import annotations

from enum import Enum


class RunState(Enum):
    """Where a turn currently is in the ReAct loop."""

    REVIEWING = "reviewing"
    CALLING = "calling"
    EXECUTING = "executing"
    PAUSED = "paused"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = {
    RunState.PAUSED,
    RunState.DONE,
    RunState.FAILED,
    RunState.CANCELLED,
}

VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.REVIEWING: {RunState.CALLING, RunState.FAILED, RunState.CANCELLED},
    RunState.CALLING: {
        RunState.EXECUTING,
        RunState.REVIEWING,
        RunState.PAUSED,
        RunState.DONE,
        RunState.FAILED,
    },
    RunState.EXECUTING: {RunState.REVIEWING, RunState.FAILED},
    RunState.PAUSED: set(),
    RunState.DONE: set(),
    RunState.FAILED: set(),
    RunState.CANCELLED: set(),
}


class RunStateMachine:
    """Enforces valid transitions and remembers the path taken."""

    def __init__(self) -> None:
        self.state = RunState.REVIEWING
        self.history: list[RunState] = [RunState.REVIEWING]

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, new_state: RunState) -> None:
        """Transition to *new_state*, raising ValueError on illegal moves."""
        if self.state in TERMINAL_STATES:
            raise ValueError(
                f"Cannot transition from terminal state {self.state.value}"
            )

        allowed = VALID_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(
                f"Invalid transition: {self.state.value} -> {new_state.value}"
            )

        self.state = new_state
        self.history.append(new_state)
