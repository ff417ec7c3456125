"""Assemble one payload per batch item from a list of candidate pools."""

from __future__ import annotations

import logging
from typing import Sequence

from ..errors import InvalidArgumentError
from .candidates import CandidatePool
from .rng import balanced_plan, pick_one

logger = logging.getLogger(__name__)

Payload = dict[str, str]


def _validate(pools: Sequence[CandidatePool], batch_size: int) -> None:
    if isinstance(batch_size, bool) or not isinstance(batch_size, int):
        raise InvalidArgumentError(f"batch_size must be an integer, got {batch_size!r}")
    if batch_size < 1:
        raise InvalidArgumentError(f"batch_size must be >= 1, got {batch_size}")
    if not pools:
        raise InvalidArgumentError("At least one parameter is required to plan a batch.")


def plan_batch(
    pools: Sequence[CandidatePool],
    batch_size: int,
    run_seed: int,
    *,
    balanced: bool = False,
) -> list[Payload]:
    """Return ``batch_size`` payloads mapping parameter label to one value.

    Parameters with a blank label, and values that are blank after trimming,
    are left out of the payload. Each parameter is sampled on its own: two
    non-randomized parameters cycle independently, so no combination of their
    values is guaranteed to appear.

    When ``balanced`` is set, randomized parameters are shuffled once per run
    and cycled instead of drawn independently per item.
    """

    _validate(pools, batch_size)
    columns: dict[int, list[str]] = {}
    if balanced:
        for position, pool in enumerate(pools):
            columns[position] = balanced_plan(pool, run_seed, pool.key, batch_size)

    payloads: list[Payload] = []
    for batch_index in range(batch_size):
        payload: Payload = {}
        for position, pool in enumerate(pools):
            label = (pool.label or "").strip()
            if not label:
                continue
            if balanced:
                value = columns[position][batch_index]
            else:
                value = pick_one(pool, run_seed, batch_index, pool.key)
            value = (value or "").strip()
            if value:
                payload[label] = value
        payloads.append(payload)
    logger.debug(
        "Planned %d payload(s) over %d parameter(s) (seed=%s, balanced=%s)",
        len(payloads),
        len(pools),
        run_seed,
        balanced,
    )
    return payloads


__all__ = ["Payload", "plan_batch"]
