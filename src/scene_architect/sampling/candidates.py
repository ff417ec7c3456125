"""Candidate pools and the rules that turn them into a sampling universe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .tokenizer import tokenize, unique_casefold


@dataclass(frozen=True, slots=True)
class CandidatePool:
    """One parameter of a scene: its list text, pinned selections, and mode."""

    label: str
    raw_list: str = ""
    selections: tuple[str, ...] = field(default_factory=tuple)
    randomize: bool = True
    identity: str = ""

    def __post_init__(self) -> None:
        # Accept any sequence (lists from config files) but store a tuple.
        object.__setattr__(self, "selections", tuple(self.selections or ()))

    @property
    def key(self) -> str:
        """Identity used to key the per-parameter generator."""

        return self.identity or self.label


def reconcile_selections(raw_list: str, selections: Sequence[str]) -> list[str]:
    """Drop selections that no longer appear in the tokenized ``raw_list``.

    Matching is case-insensitive on the trimmed selection. The surviving
    selections keep their original order and spelling.
    """

    canonical = {token.lower() for token in tokenize(raw_list)}
    return [
        selection
        for selection in selections
        if (selection or "").strip().lower() in canonical
    ]


def resolve_candidates(pool: CandidatePool) -> list[str]:
    """Return the ordered, case-insensitively unique candidates of ``pool``.

    Pinned selections replace the list when any of them is still present in
    it; otherwise the tokenized list is the universe.
    """

    if pool.selections:
        selected = unique_casefold(reconcile_selections(pool.raw_list, pool.selections))
        if selected:
            return selected
    return tokenize(pool.raw_list)


__all__ = ["CandidatePool", "reconcile_selections", "resolve_candidates"]
