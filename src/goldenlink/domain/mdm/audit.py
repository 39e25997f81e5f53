"""Audit sinks for link and merge messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from goldenlink.domain.ports import AuditSink


@dataclass(slots=True)
class TransactionLog:
    """Collects audit messages in memory, in the order they were appended."""

    messages: list[str] = field(default_factory=list[str])

    def append(self, message: str) -> None:
        self.messages.append(message)

    def flush_into(self, sink: AuditSink) -> None:
        """Hand every collected message to ``sink`` and start over."""

        for message in self.messages:
            sink.append(message)
        self.messages.clear()

    def __len__(self) -> int:
        return len(self.messages)


class LoggingAuditSink:
    """Writes each audit message to a logger."""

    def __init__(self, logger: logging.Logger | None = None, *, level: int = logging.INFO) -> None:
        self._logger = logger or logging.getLogger("goldenlink.audit")
        self._level = level

    def append(self, message: str) -> None:
        self._logger.log(self._level, message)
