"""Tool provider contract and an in-process implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Protocol, runtime_checkable

from unichat.llm.messages import JSONObject
from unichat.tools.schema import ToolDescriptor


@dataclass(frozen=True)
class ToolOutcome:
    """What a provider hands back for one call."""

    message: str
    is_error: bool = False
    metadata: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class ToolProvider(Protocol):
    """A group of tools living behind one backend (e.g. "calendar")."""

    name: str

    async def initialize(self) -> None: ...

    async def list_tools(self) -> list[ToolDescriptor]: ...

    async def call_tool(self, name: str, arguments: JSONObject) -> ToolOutcome: ...


ToolHandler = Callable[[JSONObject], Awaitable[ToolOutcome]]


class FunctionToolProvider:
    """Provider backed by registered async handlers."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._descriptors: dict[str, ToolDescriptor] = {}
        self._handlers: dict[str, ToolHandler] = {}
        self.initialized = False

    def register(self, descriptor: ToolDescriptor, handler: ToolHandler) -> None:
        self._descriptors[descriptor.name] = descriptor
        self._handlers[descriptor.name] = handler

    async def initialize(self) -> None:
        self.initialized = True

    async def list_tools(self) -> list[ToolDescriptor]:
        return list(self._descriptors.values())

    async def call_tool(self, name: str, arguments: JSONObject) -> ToolOutcome:
        handler = self._handlers.get(name)
        if handler is None:
            return ToolOutcome(message=f"Unknown tool '{name}' in provider '{self.name}'", is_error=True)
        return await handler(arguments)
