"""Candidate resolution and seeded sampling for scene batches."""

from .candidates import CandidatePool, reconcile_selections, resolve_candidates
from .planner import Payload, plan_batch
from .rng import (
    RANDOM_SEED,
    balanced_plan,
    make_generator,
    mulberry32,
    pick_one,
    stable_hash,
)
from .tokenizer import tokenize

__all__ = [
    "CandidatePool",
    "Payload",
    "RANDOM_SEED",
    "balanced_plan",
    "make_generator",
    "mulberry32",
    "pick_one",
    "plan_batch",
    "reconcile_selections",
    "resolve_candidates",
    "stable_hash",
    "tokenize",
]
