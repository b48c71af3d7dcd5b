"""Orchestrator: the bounded ReAct loop.

One call to ``process`` is one user turn: ask the model, run the tools it
asks for, feed the results back, repeat until the model answers, the step
budget runs out, a tool keeps failing the same way, or a gated tool needs
the user's confirmation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Sequence

from unichat.config import ProviderConfig, ProviderKind, TerminationStrategy
from unichat.context.manager import ContextManager
from unichat.events.progress import ProgressEmitter, ProgressKind
from unichat.llm.adapter import ProviderAdapter
from unichat.llm.client import ChatClient
from unichat.llm.errors import VendorError
from unichat.llm.messages import ToolCall, ToolResult, UnifiedMessage
from unichat.llm.registry import default_adapters
from unichat.runtime.records import AgentStep, ToolExecution
from unichat.runtime.state import RunState, RunStateMachine
from unichat.tools.confirmation import PendingAction, confirmation_prompt
from unichat.tools.gateway import ToolExecutionOutcome, ToolGateway
from unichat.tools.schema import ToolDescriptor

logger = logging.getLogger(__name__)

FINAL_RESPONSE_MARKER = "<|FINAL_RESPONSE|>"
HISTORY_WINDOW = 10
ARTIFACT_ACTIONS = ("created", "updated")


# ── Run errors ──────────────────────────────────────────────────────────────


class AgentRunError(Exception):
    """A turn aborted; ``steps`` holds whatever was recorded before the abort."""

    def __init__(self, message: str, steps: Sequence[AgentStep] = ()) -> None:
        super().__init__(message)
        self.steps = list(steps)

    @property
    def user_message(self) -> str:
        return f"Sorry, I couldn't complete your request. {self}"


class ConsecutiveToolErrors(AgentRunError):
    """Circuit breaker: the same tool error came back twice in a row."""

    def __init__(self, tool_name: str, error: str, steps: Sequence[AgentStep] = ()) -> None:
        super().__init__(f"Tool '{tool_name}' failed repeatedly: {error}", steps)
        self.tool_name = tool_name
        self.error = error


class VendorCallFailed(AgentRunError):
    pass


class AgentCancelled(AgentRunError):
    @property
    def user_message(self) -> str:
        return "The request was cancelled."


# ── Result ──────────────────────────────────────────────────────────────────


@dataclass
class AgentResult:
    """Result returned after a turn completes or pauses."""

    output: str
    state: RunState
    steps: list[AgentStep] = field(default_factory=list)
    pending_actions: list[PendingAction] = field(default_factory=list)
    artifact: dict[str, str] | None = None
    messages: list[UnifiedMessage] = field(default_factory=list)

    @property
    def steps_taken(self) -> int:
        return len(self.steps)

    @property
    def awaiting_confirmation(self) -> bool:
        return self.state == RunState.PAUSED and bool(self.pending_actions)


def render_artifact_marker(artifact: Mapping[str, str] | None) -> str | None:
    """Render a created/updated event or reminder as an inline UI marker."""
    if not artifact or "action" not in artifact:
        return None
    action = artifact["action"]

    event_id = artifact.get("eventId")
    if event_id and "eventTitle" in artifact and "startTimestamp" in artifact:
        return (
            f"[[CALENDAR_EVENT||{event_id}||{artifact['eventTitle']}"
            f"||{artifact['startTimestamp']}||{action}]]"
        )

    reminder_id = artifact.get("reminderId")
    if reminder_id and "reminderTitle" in artifact and "dueTimestamp" in artifact:
        return (
            f"[[REMINDER||{reminder_id}||{artifact['reminderTitle']}"
            f"||{artifact['dueTimestamp']}||{action}]]"
        )

    return None


# ── Orchestrator ────────────────────────────────────────────────────────────


class Orchestrator:
    """Drives the ReAct loop over a ToolGateway and a ChatClient."""

    def __init__(
        self,
        gateway: ToolGateway,
        client: ChatClient,
        adapters: Mapping[ProviderKind, ProviderAdapter] | None = None,
        max_tool_messages: int = 4,
        termination: TerminationStrategy = TerminationStrategy.NO_TOOL_CALLS,
        parallel_tool_calls: bool = True,
        emitter: ProgressEmitter | None = None,
    ) -> None:
        self.gateway = gateway
        self.client = client
        self._adapters = dict(adapters or default_adapters())
        self.max_tool_messages = max_tool_messages
        self.termination = termination
        self.parallel_tool_calls = parallel_tool_calls
        self.emitter = emitter or ProgressEmitter()
        self._cancel_requested = False

    def cancel(self) -> None:
        """Stop the running turn, or the next one to start, before its next step."""
        self._cancel_requested = True

    def _adapter(self, kind: ProviderKind) -> ProviderAdapter:
        adapter = self._adapters.get(kind)
        if adapter is None:
            raise ValueError(f"No adapter registered for provider '{kind}'")
        return adapter

    def _build_system_prompt(self, tools: Sequence[ToolDescriptor]) -> str:
        parts = [
            "You are an AI assistant that uses multi-step reasoning and tool calling "
            "to solve complex tasks.",
            "",
            "For each step:",
            "1. Think about what you need to do",
            "2. Use available tools if needed to gather information or take actions",
            "3. Continue reasoning until you have enough information to provide a final answer",
            "",
        ]
        if self.termination == TerminationStrategy.FINAL_MARKER:
            parts += [
                "When you are ready to provide your final response to the user:",
                f"- Add {FINAL_RESPONSE_MARKER} at the beginning of your response",
                "- This marker will not be shown to the user",
                "- After the marker, provide your complete final answer",
            ]
        else:
            parts.append(
                "When you have everything you need, answer the user directly without calling any tools."
            )
        tool_names = ", ".join(t.name for t in tools) or "none"
        parts += [
            "",
            f"Available tools: {tool_names}",
            f"Current date and time: {datetime.now().strftime('%A, %Y-%m-%d %H:%M')}",
            "",
            "Think step by step and use tools as needed.",
        ]
        return "\n".join(parts)

    def _final_text(self, reply: UnifiedMessage) -> str | None:
        """Final answer text if *reply* ends the loop, else None."""
        text = reply.text_content
        if self.termination == TerminationStrategy.FINAL_MARKER:
            if FINAL_RESPONSE_MARKER in text:
                return text.replace(FINAL_RESPONSE_MARKER, "").strip()
            return None
        if not reply.has_tool_calls:
            return text
        return None

    async def process(
        self,
        message: str,
        config: ProviderConfig,
        available_tools: Sequence[ToolDescriptor] | None = None,
        max_steps: int = 5,
        history: Sequence[UnifiedMessage] | None = None,
    ) -> AgentResult:
        """Run one turn for *message*.

        Raises an AgentRunError subclass when the turn aborts; its ``steps``
        carry the partial history.
        """
        if max_steps < 1:
            raise ValueError("max_steps must be >= 1")

        try:
            return await self._run(message, config, available_tools, max_steps, history)
        finally:
            # A cancel() issued before the turn started still applies to it.
            self._cancel_requested = False

    async def _run(
        self,
        message: str,
        config: ProviderConfig,
        available_tools: Sequence[ToolDescriptor] | None,
        max_steps: int,
        history: Sequence[UnifiedMessage] | None,
    ) -> AgentResult:
        sm = RunStateMachine()
        adapter = self._adapter(config.provider)

        catalog = await self.gateway.list_tools()
        tools = list(available_tools) if available_tools is not None else catalog
        await self.emitter.emit(ProgressKind.TOOLS_LOADED, count=len(tools))

        context = ContextManager(max_tool_messages=self.max_tool_messages, adapters=self._adapters)
        context.add_message(UnifiedMessage.system(self._build_system_prompt(tools)))
        for prior in list(history or [])[-HISTORY_WINDOW:]:
            context.add_message(prior)
        context.add_user_message(message)

        steps: list[AgentStep] = []
        artifact: dict[str, str] | None = None
        last_error: str | None = None

        for step_number in range(1, max_steps + 1):
            await self._check_cancelled(sm, steps)
            logger.info("Starting step %d/%d", step_number, max_steps)
            await self.emitter.emit(ProgressKind.ITERATION_STARTED, step=step_number)

            sm.transition(RunState.CALLING)
            reply = await self._call_vendor(adapter, context, tools, config, sm, steps)
            context.add_message(reply)

            final = self._final_text(reply)
            if final is not None:
                logger.info("Final answer at step %d", step_number)
                sm.transition(RunState.DONE)
                return await self._finish(final, sm, steps, artifact, context)

            calls = reply.tool_calls
            if not calls:
                # Marker strategy: the model kept reasoning without tools.
                steps.append(AgentStep(step_number, reply.text_content))
                sm.transition(RunState.REVIEWING)
                await self.emitter.emit(ProgressKind.ITERATION_COMPLETED, step=step_number)
                continue

            pending, immediate = self.gateway.partition(calls)
            if pending:
                # Surface every call of the step, not only the gated ones.
                gated = {action.tool_call_id: action for action in pending}
                actions = [
                    gated.get(c.id) or self.gateway.confirmation.build_pending_action(c)
                    for c in calls
                ]
                logger.info("Pausing for confirmation of %d action(s)", len(actions))
                sm.transition(RunState.PAUSED)
                await self.emitter.emit(
                    ProgressKind.CONFIRMATION_REQUIRED,
                    step=step_number,
                    tools=[a.tool_name for a in actions],
                )
                return AgentResult(
                    output=confirmation_prompt(len(actions)),
                    state=sm.state,
                    steps=steps,
                    pending_actions=actions,
                    artifact=artifact,
                    messages=list(context.messages),
                )

            sm.transition(RunState.EXECUTING)
            outcomes = await self._execute(immediate, step_number)
            context.add_tool_results([o.result for o in outcomes])

            steps.append(
                AgentStep(
                    step_number=step_number,
                    assistant_text=reply.text_content,
                    tool_executions=tuple(
                        ToolExecution(
                            tool_name=o.call.name,
                            arguments=o.call.arguments,
                            result_text=o.result.content,
                            is_error=o.is_error,
                            duration_ms=o.duration_ms,
                        )
                        for o in outcomes
                    ),
                )
            )

            for outcome in outcomes:
                if outcome.metadata.get("action") in ARTIFACT_ACTIONS:
                    artifact = dict(outcome.metadata)

                if not outcome.is_error:
                    last_error = None
                    continue
                if outcome.result.content == last_error:
                    logger.error(
                        "Circuit breaker tripped on '%s': %s", outcome.call.name, last_error
                    )
                    sm.transition(RunState.FAILED)
                    await self.emitter.emit(ProgressKind.FAILED, step=step_number, error=last_error)
                    raise ConsecutiveToolErrors(outcome.call.name, last_error, steps)
                last_error = outcome.result.content

            sm.transition(RunState.REVIEWING)
            await self.emitter.emit(ProgressKind.ITERATION_COMPLETED, step=step_number)

        # Step budget exhausted: one best-effort closing call with tool use disabled.
        logger.warning("Max steps (%d) reached; requesting closing answer", max_steps)
        await self._check_cancelled(sm, steps)
        sm.transition(RunState.CALLING)
        text = ""
        body = context.build_request(tools, config, allow_tools=False)
        try:
            raw = await self.client.complete(adapter, body, config)
            reply = adapter.from_response(raw)
        except VendorError as e:
            logger.warning("Closing call failed, using fallback summary: %s", e)
        else:
            context.add_message(reply)
            text = reply.text_content.replace(FINAL_RESPONSE_MARKER, "").strip()

        if not text:
            text = (
                f"I've completed {len(steps)} reasoning steps but need more time to fully "
                "address your request. Here's what I've accomplished so far based on the "
                "tool executions."
            )
        sm.transition(RunState.DONE)
        return await self._finish(text, sm, steps, artifact, context)

    async def execute_confirmed_action(self, action: PendingAction) -> ToolResult:
        """Run a confirmed action directly, without another model round trip."""
        if self.gateway.route(action.tool_name) is None:
            await self.gateway.list_tools()
        outcome = await self.gateway.execute_pending(action)
        await self.emitter.emit(
            ProgressKind.TOOL_CALL_COMPLETED,
            tool=action.tool_name,
            is_error=outcome.is_error,
            duration_ms=outcome.duration_ms,
            confirmed=True,
        )
        return outcome.result

    # ── Internals ───────────────────────────────────────────────────────────

    async def _check_cancelled(self, sm: RunStateMachine, steps: list[AgentStep]) -> None:
        if not self._cancel_requested:
            return
        logger.info("Turn cancelled after %d steps", len(steps))
        sm.transition(RunState.CANCELLED)
        await self.emitter.emit(ProgressKind.FAILED, step=len(steps), error="cancelled")
        raise AgentCancelled("Turn cancelled", steps)

    async def _call_vendor(
        self,
        adapter: ProviderAdapter,
        context: ContextManager,
        tools: Sequence[ToolDescriptor],
        config: ProviderConfig,
        sm: RunStateMachine,
        steps: list[AgentStep],
    ) -> UnifiedMessage:
        body = context.build_request(tools, config)
        try:
            raw = await self.client.complete(adapter, body, config)
            return adapter.from_response(raw)
        except VendorError as e:
            logger.error("Vendor call failed: %s", e)
            sm.transition(RunState.FAILED)
            await self.emitter.emit(ProgressKind.FAILED, step=len(steps) + 1, error=str(e))
            raise VendorCallFailed(str(e), steps) from e

    async def _execute(self, calls: Sequence[ToolCall], step_number: int) -> list[ToolExecutionOutcome]:
        for call in calls:
            logger.info("Calling tool %s", call.name)
            await self.emitter.emit(ProgressKind.TOOL_CALL_STARTED, step=step_number, tool=call.name)

        outcomes = await self.gateway.execute_all(calls, parallel=self.parallel_tool_calls)

        for outcome in outcomes:
            await self.emitter.emit(
                ProgressKind.TOOL_CALL_COMPLETED,
                step=step_number,
                tool=outcome.call.name,
                is_error=outcome.is_error,
                duration_ms=outcome.duration_ms,
            )
        return outcomes

    async def _finish(
        self,
        output: str,
        sm: RunStateMachine,
        steps: list[AgentStep],
        artifact: dict[str, str] | None,
        context: ContextManager,
    ) -> AgentResult:
        await self.emitter.emit(ProgressKind.COMPLETED, step=len(steps))
        return AgentResult(
            output=output,
            state=sm.state,
            steps=steps,
            artifact=artifact,
            messages=list(context.messages),
        )
