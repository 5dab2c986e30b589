from __future__ import annotations

import re
from typing import List, Sequence

from rank_bm25 import BM25Okapi

from .schema import NoteEntry, SearchHit


def _tok(s: str) -> list[str]:
    return re.findall(r"[A-Za-z0-9]+", s.lower())


def _entry_text(entry: NoteEntry) -> str:
    parts = [" ".join(entry.topic_path), entry.body]
    parts.extend(ex.code for ex in entry.examples)
    return "\n".join(parts)


class NoteSearchIndex:
    """BM25 over topic titles, body and example code of each entry."""

    def __init__(self) -> None:
        self.bm25: BM25Okapi | None = None
        self.topic_order: list[str] = []

    def build(self, entries: Sequence[NoteEntry]) -> "NoteSearchIndex":
        self.topic_order = [e.topic_key for e in entries]
        docs = [_tok(_entry_text(e)) for e in entries]
        # BM25Okapi divides by corpus size; an empty store has nothing to search
        self.bm25 = BM25Okapi(docs) if docs else None
        return self

    def search(self, query: str, top_k: int = 10) -> List[SearchHit]:
        if self.bm25 is None:
            return []
        q = _tok(query)
        if not q:
            return []
        scores = self.bm25.get_scores(q)
        pairs = [(i, float(s)) for i, s in enumerate(scores) if s > 0]
        # stable sort keeps store order among equal scores
        pairs.sort(key=lambda x: x[1], reverse=True)
        return [SearchHit(topic_key=self.topic_order[i], score=s) for i, s in pairs[:top_k]]
