"""Token registry — stable claim tokens for the roster.

The roster (colleagues.json) lists {name, birthday, anniversary} records.
Tokens live separately in state.json as {"tokens": {name: token}} so the
roster can be edited by hand without touching the secrets.

A token is minted the first time a name is seen and never changes after.
"""

from __future__ import annotations

import json
import logging
import shutil
import threading
import uuid
from pathlib import Path

from santalink.errors import InvalidToken, RosterError, StoreUnavailable
from santalink.jsonfile import read_json, write_json
from santalink.models import Participant

logger = logging.getLogger("santalink.registry")

ROSTER_FILE = "colleagues.json"
STATE_FILE = "state.json"


class TokenRegistry:
    """Roster plus name → token map, both backed by the data directory."""

    def __init__(self, data_dir: Path, seed_path: Path | None = None) -> None:
        self._data_dir = Path(data_dir)
        self._seed_path = seed_path
        self._roster_path = self._data_dir / ROSTER_FILE
        self._state_path = self._data_dir / STATE_FILE
        self._lock = threading.Lock()
        self._roster: list[dict] | None = None
        self._tokens: dict[str, str] | None = None

    # ── Public API ────────────────────────────────────────────

    def participants(self) -> list[Participant]:
        """The roster in seed order, every member holding a token."""
        with self._lock:
            self._load()
            missing = [r["name"] for r in self._roster if r["name"] not in self._tokens]
            if missing:
                for name in missing:
                    self._tokens[name] = _new_token()
                self._save_tokens()
                logger.info("Issued %d new claim token(s)", len(missing))
            return [
                Participant(
                    name=r["name"],
                    birthday=r["birthday"],
                    anniversary=r["anniversary"],
                    token=self._tokens[r["name"]],
                )
                for r in self._roster
            ]

    def ensure_token(self, name: str) -> str:
        """Return the token for name, minting and persisting one if absent."""
        with self._lock:
            self._load()
            token = self._tokens.get(name)
            if token is None:
                token = _new_token()
                self._tokens[name] = token
                self._save_tokens()
                logger.info("Issued claim token for %s", name)
            return token

    def resolve(self, token: str) -> Participant:
        """Find the participant holding token, or raise InvalidToken."""
        for person in self.participants():
            if person.token == token:
                return person
        raise InvalidToken(token)

    # ── Internals ─────────────────────────────────────────────

    def _load(self) -> None:
        if self._roster is not None:
            return
        try:
            self._seed()
            raw = read_json(self._roster_path)
            state = read_json(self._state_path) if self._state_path.exists() else {}
        except json.JSONDecodeError as exc:
            raise RosterError(f"unreadable roster or token state: {exc}") from exc
        except OSError as exc:
            raise StoreUnavailable(f"cannot read data directory: {exc}") from exc

        if not isinstance(state, dict) or not isinstance(state.get("tokens", {}), dict):
            raise RosterError("token state must be an object with a 'tokens' map")
        self._roster = _parse_roster(raw)
        self._tokens = dict(state.get("tokens", {}))
        logger.info(
            "Loaded roster of %d participant(s) from %s",
            len(self._roster),
            self._roster_path,
        )

    def _seed(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        if self._roster_path.exists():
            return
        if self._seed_path is not None and Path(self._seed_path).exists():
            shutil.copyfile(self._seed_path, self._roster_path)
            logger.info("Seeded roster from %s", self._seed_path)
        else:
            write_json(self._roster_path, [])
            logger.warning("No roster seed found; starting with an empty roster")

    def _save_tokens(self) -> None:
        try:
            write_json(self._state_path, {"tokens": self._tokens})
        except OSError as exc:
            raise StoreUnavailable(f"cannot write token state: {exc}") from exc


def _new_token() -> str:
    return str(uuid.uuid4())


def _parse_roster(raw) -> list[dict]:
    if not isinstance(raw, list):
        raise RosterError("roster must be a JSON list")
    roster = []
    seen: set[str] = set()
    for entry in raw:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise RosterError(f"roster entry without a name: {entry!r}")
        name = entry["name"]
        if name in seen:
            raise RosterError(f"duplicate roster name: {name}")
        seen.add(name)
        roster.append(
            {
                "name": name,
                "birthday": str(entry.get("birthday") or ""),
                "anniversary": str(entry.get("anniversary") or ""),
            }
        )
    return roster
