"""Derangement generator: a shuffled permutation with no fixed points.

Each attempt is an unbiased Fisher–Yates shuffle; the result is accepted
only if no index maps to itself. Roughly 1/e of uniform permutations are
derangements, so the attempt budget is effectively never exhausted for
n >= 2. For n == 1 every attempt is the identity and the budget always runs out.
"""

from __future__ import annotations

import random

from santalink.errors import DerangementUnreachable

MAX_ATTEMPTS = 2000

_system_random = random.SystemRandom()


def derangement(
    n: int,
    rng: random.Random | None = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> list[int]:
    """Return a permutation of range(n) with perm[i] != i for every i.

    Raises DerangementUnreachable if max_attempts shuffles all had a fixed point.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    if rng is None:
        rng = _system_random

    perm = list(range(n))
    for _ in range(max_attempts):
        for i in range(n - 1, 0, -1):
            j = rng.randrange(i + 1)
            perm[i], perm[j] = perm[j], perm[i]
        if all(v != i for i, v in enumerate(perm)):
            return perm[:]
    raise DerangementUnreachable(n, max_attempts)
