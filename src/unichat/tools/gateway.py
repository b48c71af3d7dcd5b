"""Tool Execution Gateway: routes tool calls to their provider group.

Every call ends up as a ToolResult; nothing raised by a provider escapes
``execute``. Calls in the confirmation set are turned into PendingActions
by ``partition`` and only run later through ``execute_pending``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Sequence

from unichat.llm.messages import ToolCall, ToolResult
from unichat.tools.audit import AuditEntry, AuditLogger
from unichat.tools.confirmation import ConfirmationPolicy, PendingAction
from unichat.tools.provider import ToolProvider
from unichat.tools.schema import ToolDescriptor

logger = logging.getLogger(__name__)


class ToolNotFound(LookupError):
    pass


@dataclass(frozen=True)
class ToolExecutionOutcome:
    call: ToolCall
    result: ToolResult
    duration_ms: int = 0
    group: str = ""
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.result.is_error


class ToolGateway:
    def __init__(
        self,
        providers: Sequence[ToolProvider] = (),
        confirmation: ConfirmationPolicy | None = None,
        timeout_seconds: float = 30.0,
        max_concurrent_per_tool: int = 10,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._providers: dict[str, ToolProvider] = {}
        for provider in providers:
            self.add_provider(provider)
        self.confirmation = confirmation or ConfirmationPolicy()
        self.timeout_seconds = timeout_seconds
        self._max_concurrent = max_concurrent_per_tool
        self._semaphores: dict[str, asyncio.Semaphore] = {}
        self._routes: dict[str, str] = {}
        self.audit_logger = audit_logger or AuditLogger()

    def add_provider(self, provider: ToolProvider) -> None:
        if provider.name in self._providers:
            raise ValueError(f"Tool provider group '{provider.name}' already registered")
        self._providers[provider.name] = provider

    @property
    def groups(self) -> list[str]:
        return list(self._providers)

    # ── Catalog ─────────────────────────────────────────────────────────────

    async def initialize(self) -> dict[str, str]:
        """Initialize every provider; return ``{group: error}`` for the ones that failed."""
        failures: dict[str, str] = {}
        for group, provider in self._providers.items():
            try:
                await provider.initialize()
            except Exception as e:
                logger.exception("Tool provider '%s' failed to initialize", group)
                failures[group] = str(e)
        return failures

    async def list_tools(self) -> list[ToolDescriptor]:
        """Collect all descriptors and rebuild the name -> group routing table."""
        routes: dict[str, str] = {}
        tools: list[ToolDescriptor] = []
        for group, provider in self._providers.items():
            for descriptor in await provider.list_tools():
                owner = routes.get(descriptor.name)
                if owner is not None and owner != group:
                    raise ValueError(
                        f"Tool '{descriptor.name}' is claimed by both '{owner}' and '{group}'"
                    )
                if owner is None:
                    routes[descriptor.name] = group
                    tools.append(descriptor)
        self._routes = routes
        logger.info("Loaded %d tools from %d providers", len(tools), len(self._providers))
        return tools

    def route(self, tool_name: str) -> str | None:
        return self._routes.get(tool_name)

    # ── Policy ──────────────────────────────────────────────────────────────

    def partition(self, calls: Sequence[ToolCall]) -> tuple[list[PendingAction], list[ToolCall]]:
        """Split *calls* into (pending, immediate), each in call order."""
        pending: list[PendingAction] = []
        immediate: list[ToolCall] = []
        for call in calls:
            if self.confirmation.requires_confirmation(call.name):
                pending.append(self.confirmation.build_pending_action(call))
            else:
                immediate.append(call)
        return pending, immediate

    # ── Execution ───────────────────────────────────────────────────────────

    def _get_semaphore(self, tool_name: str) -> asyncio.Semaphore:
        if tool_name not in self._semaphores:
            self._semaphores[tool_name] = asyncio.Semaphore(self._max_concurrent)
        return self._semaphores[tool_name]

    async def execute(self, call: ToolCall, confirmed: bool = False) -> ToolExecutionOutcome:
        start = time.monotonic()
        group = self.route(call.name) or ""
        metadata: dict[str, str] = {}

        try:
            provider = self._providers.get(group)
            if provider is None:
                raise ToolNotFound(f"Tool '{call.name}' not found")
            async with self._get_semaphore(call.name):
                outcome = await asyncio.wait_for(
                    provider.call_tool(call.name, call.arguments),
                    timeout=self.timeout_seconds,
                )
            content, is_error = outcome.message, outcome.is_error
            metadata = dict(outcome.metadata)
        except ToolNotFound as e:
            content, is_error = str(e), True
        except asyncio.TimeoutError:
            content = f"Tool '{call.name}' timeout after {self.timeout_seconds}s"
            is_error = True
        except Exception as e:
            logger.exception("Tool '%s' raised", call.name)
            content, is_error = str(e) or type(e).__name__, True

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Tool %s finished in %dms (%s)", call.name, duration_ms, "error" if is_error else "ok"
        )

        result = ToolResult(tool_call_id=call.id, content=content, is_error=is_error)
        self._log_audit(call, group, result, duration_ms, confirmed)
        return ToolExecutionOutcome(
            call=call, result=result, duration_ms=duration_ms, group=group, metadata=metadata
        )

    async def execute_all(
        self, calls: Sequence[ToolCall], parallel: bool = True
    ) -> list[ToolExecutionOutcome]:
        """Run *calls*; outcomes come back in call order either way."""
        if parallel:
            return list(await asyncio.gather(*(self.execute(call) for call in calls)))
        return [await self.execute(call) for call in calls]

    async def execute_pending(self, action: PendingAction) -> ToolExecutionOutcome:
        """Run a user-confirmed action with its stored arguments."""
        call = ToolCall(
            id=action.tool_call_id or action.id,
            name=action.tool_name,
            arguments=dict(action.arguments),
        )
        logger.info("Executing confirmed %s action via %s", action.type.value, action.tool_name)
        return await self.execute(call, confirmed=True)

    def _log_audit(
        self,
        call: ToolCall,
        group: str,
        result: ToolResult,
        duration_ms: int,
        confirmed: bool,
    ) -> None:
        entry = AuditEntry(
            tool_name=call.name,
            group=group,
            success=not result.is_error,
            duration_ms=duration_ms,
            confirmed=confirmed,
            result_summary="" if result.is_error else result.content[:500],
            error=result.content if result.is_error else "",
        )
        self.audit_logger.log(entry)
