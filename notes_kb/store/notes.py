from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Tuple, Union

from pydantic import ValidationError

from ..errors import NotFound
from ..index.schema import NoteEntry, Provenance, split_topic

logger = logging.getLogger(__name__)

TopicRef = Union[str, Sequence[str]]
TopicPath = Tuple[str, ...]


class NoteStore:
    """
    Canonical entries keyed by topic path, kept in first-insertion order.

    Keys are the path tuples themselves; a joined string such as "A > B" is
    only accepted on lookup and is split on ">" first.

    Not thread-safe; construct one per pipeline run and pass it around.
    """

    def __init__(self) -> None:
        self._entries: Dict[TopicPath, NoteEntry] = {}
        self._provenance: Dict[TopicPath, List[Provenance]] = {}

    def put(self, entry: NoteEntry) -> None:
        key = entry.topic_path
        # dict assignment keeps the original slot of an existing key
        self._entries[key] = entry
        self.add_provenance(entry.topic_path, entry.provenance)

    def add_provenance(self, topic_path: TopicRef, prov: Provenance) -> None:
        """Record that `prov` contributed to a topic (e.g. a merged-away duplicate)."""
        records = self._provenance.setdefault(split_topic(topic_path), [])
        if prov not in records:
            records.append(prov)

    def get(self, topic_path: TopicRef) -> NoteEntry:
        try:
            return self._entries[split_topic(topic_path)]
        except KeyError:
            raise NotFound(split_topic(topic_path)) from None

    def list(self) -> List[NoteEntry]:
        return list(self._entries.values())

    def provenance(self, topic_path: TopicRef) -> List[Provenance]:
        try:
            return list(self._provenance[split_topic(topic_path)])
        except KeyError:
            raise NotFound(split_topic(topic_path)) from None

    def __contains__(self, topic_path: object) -> bool:
        if not isinstance(topic_path, (str, tuple, list)):
            return False
        return split_topic(topic_path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[NoteEntry]:
        return iter(self.list())

    # ---- JSONL snapshot ----

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as out:
            for key, entry in self._entries.items():
                row = {
                    "entry": entry.model_dump(mode="json"),
                    "provenance": [p.model_dump(mode="json") for p in self._provenance.get(key, [])],
                }
                out.write(json.dumps(row, ensure_ascii=False) + "\n")
        logger.debug("Saved %d entries to %s", len(self._entries), path)
        return path

    @classmethod
    def load(cls, path: Path) -> "NoteStore":
        path = Path(path)
        store = cls()
        with open(path, "r", encoding="utf-8") as f:
            for i, ln in enumerate(f, start=1):
                s = ln.strip()
                if not s:
                    continue
                try:
                    row = json.loads(s)
                    entry = NoteEntry(**row["entry"])
                    prov = [Provenance(**p) for p in row.get("provenance", [])]
                except (json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
                    raise RuntimeError(f"Failed to parse JSONL line {i} in {path}: {e}") from e
                store._entries[entry.topic_path] = entry
                store._provenance[entry.topic_path] = prov or [entry.provenance]
        logger.debug("Loaded %d entries from %s", len(store), path)
        return store
