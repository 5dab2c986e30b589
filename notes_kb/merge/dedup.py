"""
Near-duplicate resolution between two entries for the same topic.

Bodies are compared after whitespace normalization by Jaccard overlap of
their token sets. Everything here is pure: same inputs, same decision.
"""
from __future__ import annotations

from typing import Iterable, NamedTuple, Optional

from ..index.schema import NoteEntry
from ..ingest.clean import collapse_whitespace

DEFAULT_THRESHOLD = 0.6


class MergeDecision(NamedTuple):
    winner: NoteEntry
    loser: NoteEntry
    merged: bool      # True: near-duplicates collapsed; False: last write wins
    overlap: float


def normalize_body(body: str) -> str:
    return collapse_whitespace(body)


def _tokens(s: str) -> list[str]:
    return normalize_body(s).split()


def _jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    A, B = set(a), set(b)
    if not A and not B:
        return 1.0
    if not A or not B:
        return 0.0
    return len(A & B) / len(A | B)


def token_overlap(a: str, b: str) -> float:
    return _jaccard(_tokens(a), _tokens(b))


def is_duplicate(first: NoteEntry, second: NoteEntry, threshold: float = DEFAULT_THRESHOLD) -> bool:
    if first.topic_path != second.topic_path:
        return False
    return token_overlap(first.body, second.body) > threshold


def resolve(
    first: NoteEntry, second: NoteEntry, threshold: Optional[float] = None
) -> MergeDecision:
    """
    Decide which of two same-topic entries survives.

    `first` must be the entry seen earlier in input order. Near-duplicates keep
    the longer normalized body, ties keep `first`. Entries that are not
    duplicates follow last-write-wins, so `second` survives.
    """
    if first.topic_path != second.topic_path:
        raise ValueError(
            f"cannot merge different topics: {first.topic_key!r} vs {second.topic_key!r}"
        )
    if threshold is None:
        threshold = DEFAULT_THRESHOLD

    overlap = token_overlap(first.body, second.body)
    if overlap <= threshold:
        return MergeDecision(winner=second, loser=first, merged=False, overlap=overlap)

    if len(normalize_body(second.body)) > len(normalize_body(first.body)):
        return MergeDecision(winner=second, loser=first, merged=True, overlap=overlap)
    return MergeDecision(winner=first, loser=second, merged=True, overlap=overlap)
