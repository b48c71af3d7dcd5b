"""Audit trail of gateway tool executions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    tool_name: str
    group: str
    success: bool
    duration_ms: int
    confirmed: bool = False
    result_summary: str = ""
    error: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditLogger:
    """Keeps entries in memory; subclass to ship them elsewhere."""

    def __init__(self, max_entries: int = 1000) -> None:
        self.max_entries = max_entries
        self.entries: list[AuditEntry] = []

    def log(self, entry: AuditEntry) -> None:
        self.entries.append(entry)
        if len(self.entries) > self.max_entries:
            del self.entries[: len(self.entries) - self.max_entries]
        logger.debug(
            "audit tool=%s group=%s success=%s duration_ms=%d",
            entry.tool_name,
            entry.group,
            entry.success,
            entry.duration_ms,
        )

    def for_tool(self, tool_name: str) -> list[AuditEntry]:
        return [e for e in self.entries if e.tool_name == tool_name]
