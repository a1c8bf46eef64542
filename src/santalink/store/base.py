"""Abstract assignment store.

Rows are keyed by giver token. Implementations must make upsert
all-or-nothing per batch and raise StoreUnavailable for backend failures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from santalink.models import Assignment


class AssignmentStore(ABC):
    """Persistence for the group's assignment set."""

    mode: str = "abstract"

    @abstractmethod
    def upsert(self, pairs: Iterable[Assignment]) -> None:
        """Insert or overwrite rows by giver token, as one batch."""

    @abstractmethod
    def get_all(self) -> list[Assignment]:
        """All rows, ordered by giver name."""

    @abstractmethod
    def get_by_token(self, token: str) -> Assignment | None:
        """The row for this giver token, if any."""

    @abstractmethod
    def reset(self) -> None:
        """Delete every row."""

    @abstractmethod
    def ping(self) -> None:
        """Raise StoreUnavailable if the backend cannot be reached."""

    def close(self) -> None:
        """Release backend resources."""
