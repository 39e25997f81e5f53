"""Audit/transaction-log sink port."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AuditSink(Protocol):
    """Receives one human-readable line per link change and per merge."""

    def append(self, message: str) -> None: ...
