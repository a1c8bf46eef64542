"""In-process assignment store. Nothing survives a restart."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from santalink.models import Assignment
from santalink.store.base import AssignmentStore


class MemoryStore(AssignmentStore):
    mode = "memory"

    def __init__(self) -> None:
        self._rows: dict[str, Assignment] = {}
        self._lock = threading.Lock()

    def upsert(self, pairs: Iterable[Assignment]) -> None:
        batch = {p.giver_token: p for p in pairs}
        with self._lock:
            self._rows.update(batch)

    def get_all(self) -> list[Assignment]:
        with self._lock:
            return sorted(self._rows.values(), key=lambda a: a.giver_name)

    def get_by_token(self, token: str) -> Assignment | None:
        with self._lock:
            return self._rows.get(token)

    def reset(self) -> None:
        with self._lock:
            self._rows.clear()

    def ping(self) -> None:
        return None
