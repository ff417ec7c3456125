"""Seeded generators for per-parameter draws.

Every (run seed, batch index, parameter identity) triple gets its own
mulberry32 stream so that parameters never share a correlated sequence. A run
seed of ``-1`` switches every draw to the process-wide ``random`` source.
"""

from __future__ import annotations

import math
import random
from typing import Callable

from .candidates import CandidatePool, resolve_candidates

Generator = Callable[[], float]

RANDOM_SEED = -1

_MASK32 = 0xFFFFFFFF
_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619
_MULBERRY_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def stable_hash(identity: str) -> int:
    """32-bit FNV-1a over the UTF-16 code units of ``identity``."""

    h = _FNV_OFFSET_BASIS
    data = (identity or "").encode("utf-16-le")
    for idx in range(0, len(data), 2):
        h ^= data[idx] | (data[idx + 1] << 8)
        h = _imul(h, _FNV_PRIME)
    return h


def mulberry32(seed: int) -> Generator:
    """Return a restartable generator of floats in ``[0, 1)``."""

    state = int(seed) & _MASK32

    def draw() -> float:
        nonlocal state
        state = (state + _MULBERRY_INCREMENT) & _MASK32
        r = _imul(state ^ (state >> 15), 1 | state)
        r ^= (r + _imul(r ^ (r >> 7), 61 | r)) & _MASK32
        return ((r ^ (r >> 14)) & _MASK32) / _TWO_POW_32

    return draw


def is_random_seed(run_seed: int) -> bool:
    return int(run_seed) == RANDOM_SEED


def make_generator(run_seed: int, batch_index: int, identity: str) -> Generator:
    """Build the generator for one parameter of one batch item."""

    if is_random_seed(run_seed):
        return random.random
    return mulberry32(int(run_seed) + int(batch_index) + stable_hash(identity))


def pick_one(
    pool: CandidatePool,
    run_seed: int,
    batch_index: int,
    identity: str | None = None,
) -> str:
    """Pick exactly one value of ``pool`` for batch item ``batch_index``.

    Randomized pools draw from their own generator; the others cycle through
    the candidates by batch index, independent of the seed. An empty pool
    yields ``""``.
    """

    candidates = resolve_candidates(pool)
    if not candidates:
        return ""
    if pool.randomize:
        draw = make_generator(run_seed, batch_index, identity or pool.key)
        return candidates[math.floor(draw() * len(candidates))]
    return candidates[batch_index % len(candidates)]


def balanced_plan(
    pool: CandidatePool,
    run_seed: int,
    identity: str,
    batch_size: int,
) -> list[str]:
    """Spread the candidates of ``pool`` evenly across a batch.

    Randomized pools are shuffled once (Fisher-Yates, seeded by run seed and
    identity) and the resulting order is cycled; other pools cycle in list
    order.
    """

    candidates = resolve_candidates(pool)
    if not candidates:
        return [""] * batch_size
    if len(candidates) == 1:
        return [candidates[0]] * batch_size

    order = list(candidates)
    if pool.randomize:
        draw = (
            random.random
            if is_random_seed(run_seed)
            else mulberry32(int(run_seed) + stable_hash(identity))
        )
        for i in range(len(order) - 1, 0, -1):
            j = math.floor(draw() * (i + 1))
            order[i], order[j] = order[j], order[i]
    return [order[b % len(order)] for b in range(batch_size)]


__all__ = [
    "Generator",
    "RANDOM_SEED",
    "balanced_plan",
    "is_random_seed",
    "make_generator",
    "mulberry32",
    "pick_one",
    "stable_hash",
]
