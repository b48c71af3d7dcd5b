"""Progress events for UIs and logs.

Subscribers never influence the loop: anything they raise is logged and
dropped.
"""

from __future__ import annotations

import inspect
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger(__name__)


class ProgressKind(Enum):
    TOOLS_LOADED = "tools_loaded"
    ITERATION_STARTED = "iteration_started"
    ITERATION_COMPLETED = "iteration_completed"
    TOOL_CALL_STARTED = "tool_call_started"
    TOOL_CALL_COMPLETED = "tool_call_completed"
    CONFIRMATION_REQUIRED = "confirmation_required"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ProgressEvent:
    kind: ProgressKind
    step: int = 0
    data: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    time: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


ProgressHandler = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


class ProgressEmitter:
    def __init__(self) -> None:
        self._handlers: list[ProgressHandler] = []

    def subscribe(self, handler: ProgressHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: ProgressHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def emit(self, kind: ProgressKind, step: int = 0, **data: Any) -> ProgressEvent:
        event = ProgressEvent(kind=kind, step=step, data=data)
        for handler in list(self._handlers):
            try:
                outcome = handler(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("Progress subscriber failed on %s", kind.value)
        return event
