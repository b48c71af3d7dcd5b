"""Confirmation gating for irreversible tool calls."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from unichat.llm.messages import JSONObject, ToolCall

DEFAULT_CONFIRMATION_TOOLS = frozenset(
    {"delete_event", "update_event", "delete_reminder", "complete_reminder"}
)


class PendingActionType(Enum):
    DELETE = "delete"
    UPDATE = "update"
    COMPLETE = "complete"


_ACTION_TYPES = {
    "delete_event": PendingActionType.DELETE,
    "delete_reminder": PendingActionType.DELETE,
    "update_event": PendingActionType.UPDATE,
    "complete_reminder": PendingActionType.COMPLETE,
}


@dataclass(frozen=True)
class PendingAction:
    """A deferred tool call awaiting an explicit yes from the user."""

    type: PendingActionType
    tool_name: str
    arguments: JSONObject
    title: str
    details: str
    tool_call_id: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


class ConfirmationPolicy:
    """Decides which tool names are gated and describes them for the user."""

    def __init__(self, tool_names: Iterable[str] = DEFAULT_CONFIRMATION_TOOLS) -> None:
        self.tool_names = frozenset(tool_names)

    def requires_confirmation(self, tool_name: str) -> bool:
        return tool_name in self.tool_names

    def build_pending_action(self, call: ToolCall) -> PendingAction:
        args = call.arguments
        title = args.get("title") or args.get("event_id") or "Item"

        details = ""
        if args.get("notes"):
            details += str(args["notes"])
        if args.get("start_date"):
            details += f" Start: {args['start_date']}"

        return PendingAction(
            type=_ACTION_TYPES.get(call.name, PendingActionType.UPDATE),
            tool_name=call.name,
            arguments=dict(args),
            title=str(title),
            details=details or "No additional details",
            tool_call_id=call.id,
        )


def confirmation_prompt(count: int) -> str:
    return f"I need your confirmation to proceed with {count} action(s). Please review and confirm."
