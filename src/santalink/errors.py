"""Santalink error hierarchy.

Every error the core raises derives from SantalinkError. The gateway maps
each subclass to an HTTP status in santalink.app.
"""

from __future__ import annotations


class SantalinkError(Exception):
    """Base for all Santalink errors."""


class InvalidToken(SantalinkError):
    """No participant holds this token."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__("invalid token")


class GroupTooSmall(SantalinkError):
    """A draw needs at least two participants."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"need at least 2 participants to draw, got {size}")


class DerangementUnreachable(SantalinkError):
    """The shuffle budget ran out without producing a derangement."""

    def __init__(self, n: int, attempts: int) -> None:
        self.n = n
        self.attempts = attempts
        super().__init__(
            f"failed to create derangement of {n} after {attempts} attempts"
        )


class StaleAssignments(SantalinkError):
    """Stored assignments no longer match the roster; a reset is required."""


class StoreUnavailable(SantalinkError):
    """The assignment store could not be reached in time."""


class RosterError(SantalinkError):
    """The roster document is malformed."""
