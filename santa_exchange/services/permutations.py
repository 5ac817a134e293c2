"""
Random permutations used by the assignment run.

derangement() pairs each santa with a receiver so nobody draws themselves.
For three or more people it rejects uniform shuffles until one has no fixed
point, which is uniform over derangements. If MAX_ATTEMPTS shuffles all fail
it falls back to rotating the list by one. The rotation is always a valid
derangement but it is NOT uniform; with ~1/e success per attempt the fallback
is practically unreachable, and it is logged when it happens.

receiver_numbers() is a plain uniform shuffle of 1..N used to mask receivers.
"""
from __future__ import annotations

import logging
import random
from typing import Sequence, TypeVar

from ..errors import InsufficientParticipants

T = TypeVar("T")

MAX_ATTEMPTS = 1000

log = logging.getLogger(__name__)

_system_rng = random.SystemRandom()


def shuffled(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy of items."""
    out = list(items)
    (rng or _system_rng).shuffle(out)
    return out


def is_derangement(original: Sequence, candidate: Sequence) -> bool:
    if len(original) != len(candidate):
        return False
    return all(a != b for a, b in zip(original, candidate))


def rotate_by_one(items: Sequence[T]) -> list[T]:
    """Move the last element to the front."""
    out = list(items)
    if out:
        out.insert(0, out.pop())
    return out


def derangement(
    items: Sequence[T],
    rng: random.Random | None = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> list[T]:
    """
    Return a permutation of items where no element keeps its index.

    Positions are compared, not values, so equal items never hide a fixed point.
    Raises InsufficientParticipants for fewer than two items.
    """
    n = len(items)
    if n < 2:
        raise InsufficientParticipants(n)

    if n == 2:
        return [items[1], items[0]]

    rng = rng or _system_rng
    identity = list(range(n))
    for _ in range(max_attempts):
        order = identity[:]
        rng.shuffle(order)
        if is_derangement(identity, order):
            return [items[i] for i in order]

    log.warning(
        "No derangement found in %d attempts for %d items; using rotation fallback",
        max_attempts,
        n,
    )
    return rotate_by_one(items)


def receiver_numbers(count: int, rng: random.Random | None = None) -> list[int]:
    """Uniformly random ordering of 1..count."""
    if count < 0:
        raise ValueError("count must be non-negative")
    return shuffled(range(1, count + 1), rng)
