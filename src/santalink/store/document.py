"""Assignment store backed by a local JSON document.

The document is a list of {token, giver, receiver_token, receiver} rows,
the same shape as the SQL table. Every write replaces the whole file
atomically, so a batch is never half-visible.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from contextlib import contextmanager
from pathlib import Path

from santalink.errors import StoreUnavailable
from santalink.jsonfile import read_json, write_json
from santalink.models import Assignment
from santalink.store.base import AssignmentStore

logger = logging.getLogger("santalink.store")

ASSIGNMENTS_FILE = "assignments.json"


class JsonDocumentStore(AssignmentStore):
    mode = "local-json"

    def __init__(self, data_dir: Path, timeout: float = 5.0) -> None:
        self._path = Path(data_dir) / ASSIGNMENTS_FILE
        self._timeout = timeout
        self._lock = threading.Lock()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailable(f"cannot create {self._path.parent}: {exc}") from exc

    def upsert(self, pairs: Iterable[Assignment]) -> None:
        batch = [_to_row(p) for p in pairs]
        with self._locked():
            rows = {r["token"]: r for r in self._read()}
            for row in batch:
                rows[row["token"]] = row
            self._write(list(rows.values()))

    def get_all(self) -> list[Assignment]:
        with self._locked():
            rows = self._read()
        return sorted((_from_row(r) for r in rows), key=lambda a: a.giver_name)

    def get_by_token(self, token: str) -> Assignment | None:
        with self._locked():
            rows = self._read()
        for row in rows:
            if row.get("token") == token:
                return _from_row(row)
        return None

    def reset(self) -> None:
        with self._locked():
            self._write([])

    def ping(self) -> None:
        with self._locked():
            if not self._path.parent.is_dir():
                raise StoreUnavailable(f"data directory missing: {self._path.parent}")
            if self._path.exists():
                self._read()

    # ── Internals ─────────────────────────────────────────────

    @contextmanager
    def _locked(self):
        if not self._lock.acquire(timeout=self._timeout):
            raise StoreUnavailable(f"timed out after {self._timeout}s waiting for {self._path.name}")
        try:
            yield
        finally:
            self._lock.release()

    def _read(self) -> list[dict]:
        if not self._path.exists():
            return []
        try:
            rows = read_json(self._path)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreUnavailable(f"cannot read {self._path}: {exc}") from exc
        if not isinstance(rows, list):
            raise StoreUnavailable(f"{self._path} is not a list of assignments")
        return rows

    def _write(self, rows: list[dict]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            write_json(self._path, rows)
        except OSError as exc:
            raise StoreUnavailable(f"cannot write {self._path}: {exc}") from exc
        logger.debug("Wrote %d assignment row(s) to %s", len(rows), self._path)


def _to_row(pair: Assignment) -> dict:
    return {
        "token": pair.giver_token,
        "giver": pair.giver_name,
        "receiver_token": pair.receiver_token,
        "receiver": pair.receiver_name,
    }


def _from_row(row: dict) -> Assignment:
    return Assignment(
        giver_token=row["token"],
        giver_name=row["giver"],
        receiver_token=row["receiver_token"],
        receiver_name=row["receiver"],
    )
