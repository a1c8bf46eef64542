"""Assignment builder: one derangement → the whole group's pairs."""

from __future__ import annotations

import random
from collections.abc import Sequence

from santalink.derangement import derangement
from santalink.errors import GroupTooSmall
from santalink.models import Assignment, Participant


def build_assignments(
    participants: Sequence[Participant],
    rng: random.Random | None = None,
) -> list[Assignment]:
    """Pair every participant with a receiver from a single derangement.

    Results come back in roster order. Each token appears exactly once as
    giver and once as receiver.
    """
    if len(participants) < 2:
        raise GroupTooSmall(len(participants))

    perm = derangement(len(participants), rng=rng)
    pairs = []
    for i, giver in enumerate(participants):
        receiver = participants[perm[i]]
        pairs.append(
            Assignment(
                giver_token=giver.token,
                giver_name=giver.name,
                receiver_token=receiver.token,
                receiver_name=receiver.name,
            )
        )
    return pairs
