"""Draw service — reveal, reset and export on top of registry + store.

The group's assignment set is drawn at most once per reset cycle: the first
reveal against an empty store draws for everyone and persists the whole
batch; every later reveal reads what was stored. The check-draw-write
sequence runs under a lock so concurrent first reveals cannot both draw.
"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from santalink import export
from santalink.assignments import build_assignments
from santalink.errors import InvalidToken, StaleAssignments, StoreUnavailable
from santalink.models import Assignment, Participant
from santalink.registry import TokenRegistry
from santalink.store.base import AssignmentStore

logger = logging.getLogger("santalink")


class SantaService:
    """Everything the request handlers need, behind one handle."""

    def __init__(
        self,
        registry: TokenRegistry,
        store: AssignmentStore,
        *,
        base_url: str = "",
        lock_timeout: float = 5.0,
        rng: random.Random | None = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.base_url = base_url
        self._lock_timeout = lock_timeout
        self._rng = rng
        self._draw_lock = threading.Lock()

    def whoami(self, token: str) -> Participant:
        return self.registry.resolve(token)

    def reveal(self, token: str) -> Participant:
        """Return the receiver assigned to token's owner, drawing if needed."""
        people = self.registry.participants()
        by_token = {p.token: p for p in people}
        if token not in by_token:
            raise InvalidToken(token)

        row = self.store.get_by_token(token)
        if row is None:
            row = self._draw_once(token, people)

        receiver = by_token.get(row.receiver_token)
        if receiver is None:
            raise StaleAssignments(
                "assigned receiver is no longer on the roster; reset required"
            )
        return receiver

    def reset(self) -> None:
        with self._locked():
            self.store.reset()
        logger.warning("Assignments reset; the next reveal draws again")

    def health(self) -> dict:
        self.store.ping()
        return {"ok": True, "mode": self.store.mode}

    def claim_link(self, token: str) -> str:
        return f"{self.base_url}/claim/{token}"

    def links_csv(self) -> str:
        return export.links_csv(self.registry.participants(), self.claim_link)

    def assignments_csv(self) -> str:
        return export.assignments_csv(
            self.registry.participants(), self.store.get_all(), self.claim_link
        )

    # ── Internals ─────────────────────────────────────────────

    def _draw_once(self, token: str, people: list[Participant]) -> Assignment:
        with self._locked():
            # Another request may have drawn while we waited.
            row = self.store.get_by_token(token)
            if row is not None:
                return row
            if self.store.get_all():
                raise StaleAssignments(
                    "roster changed since the draw; reset required"
                )

            pairs = build_assignments(people, rng=self._rng)
            self.store.upsert(pairs)
            logger.info("Drew assignments for %d participants", len(pairs))

            row = self.store.get_by_token(token)
            if row is None:
                raise StoreUnavailable("assignment batch was not persisted")
            return row

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._draw_lock.acquire(timeout=self._lock_timeout):
            raise StoreUnavailable(
                f"timed out after {self._lock_timeout}s waiting for the draw lock"
            )
        try:
            yield
        finally:
            self._draw_lock.release()
