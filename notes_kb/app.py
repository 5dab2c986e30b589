from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import AppConfig
from .errors import NotFound, ParseError
from .index.schema import NoteEntry
from .ingest.markdown import ingest_file
from .merge.dedup import resolve
from .store.notes import NoteStore
from .utils.log import EventLog

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    documents: int = 0
    entries: int = 0
    merged: int = 0
    replaced: int = 0
    failed: Dict[str, str] = field(default_factory=dict)  # source_file -> error

    def summary(self) -> str:
        return (
            f"documents={self.documents} entries={self.entries} merged={self.merged} "
            f"replaced={self.replaced} failed={len(self.failed)}"
        )


def iter_note_files(paths: Iterable[str | Path], extensions: Sequence[str]) -> List[Path]:
    """
    Expand files and directories into note files.

    Sorted by file name, then by full path for equal names, so merge order is fixed.
    """
    exts = {e.lower() for e in extensions}
    found = set()
    for p in paths:
        p = Path(p)
        if p.is_dir():
            for f in p.rglob("*"):
                if f.is_file() and f.suffix.lower() in exts:
                    found.add(f)
        elif p.is_file():
            found.add(p)
        else:
            logger.warning("No such file or directory: %s", p)
    return sorted(found, key=lambda f: (f.name, str(f)))


def _merge_into(
    store: NoteStore, entry: NoteEntry, threshold: float, report: IngestReport, events: Optional[EventLog]
) -> None:
    try:
        current = store.get(entry.topic_path)
    except NotFound:
        store.put(entry)
        return

    decision = resolve(current, entry, threshold)
    if decision.merged:
        report.merged += 1
        logger.debug(
            "Merged duplicate %s (overlap %.2f), kept %s",
            entry.topic_key, decision.overlap, decision.winner.source_file,
            extra={"topic": entry.topic_key},
        )
    else:
        report.replaced += 1
        logger.info(
            "Replaced %s from %s with %s (overlap %.2f)",
            entry.topic_key, current.source_file, entry.source_file, decision.overlap,
            extra={"topic": entry.topic_key},
        )
    if events is not None:
        events.write(
            "merge" if decision.merged else "replace",
            topic=entry.topic_key,
            winner=decision.winner.source_file,
            loser=decision.loser.source_file,
            overlap=round(decision.overlap, 4),
        )
    store.add_provenance(entry.topic_path, decision.loser.provenance)
    store.put(decision.winner)


def build_note_store(
    paths: Iterable[str | Path],
    cfg: AppConfig,
    store: Optional[NoteStore] = None,
    events: Optional[EventLog] = None,
) -> tuple[NoteStore, IngestReport]:
    """
    Ingest every note file under `paths` into `store` (a fresh one if None).

    A document that fails to parse contributes nothing; the error is logged,
    recorded in the report and the event log, and ingestion moves on.
    """
    store = store if store is not None else NoteStore()
    report = IngestReport()

    for f in iter_note_files(paths, cfg.ingest.extensions):
        report.documents += 1
        try:
            # Parse the whole document before touching the store
            entries = list(ingest_file(f, cfg.ingest))
        except ParseError as e:
            report.failed[str(f)] = str(e)
            logger.error("Skipping %s: %s", f, e, extra={"source_file": str(f), "line": e.line})
            if events is not None:
                events.write("parse_error", file=str(f), line=e.line, error=str(e))
            continue

        logger.debug("Parsed %d entries from %s", len(entries), f, extra={"source_file": str(f)})
        for entry in entries:
            report.entries += 1
            _merge_into(store, entry, cfg.dedup.threshold, report, events)

    logger.info("Ingest complete: %s", report.summary())
    return store, report
