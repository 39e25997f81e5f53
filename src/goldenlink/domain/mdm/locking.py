"""Per-key mutual exclusion for MDM operations.

Merges hold one lock per golden record id, acquired in ascending order.
Link writes hold the source key and then the golden record id. Ingest holds
the source key and then the golden record it attaches to.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterator


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[Hashable, _Entry] = {}

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        """Hold the locks for every key, acquired in sorted order."""

        ordered = sorted(set(keys), key=str)
        entries: list[tuple[Hashable, _Entry]] = []
        acquired: list[_Entry] = []
        try:
            for key in ordered:
                entry = self._checkout(key)
                entries.append((key, entry))
                entry.lock.acquire()
                acquired.append(entry)
            yield
        finally:
            for entry in reversed(acquired):
                entry.lock.release()
            for key, _ in entries:
                self._checkin(key)

    def is_held(self, key: Hashable) -> bool:
        with self._guard:
            entry = self._entries.get(key)
            return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def _checkout(self, key: Hashable) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                return
            entry.users -= 1
            if entry.users <= 0:
                del self._entries[key]
