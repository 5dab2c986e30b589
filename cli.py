#!/usr/bin/env python3
import argparse
import logging
import sys
from pathlib import Path

from notes_kb.app import build_note_store
from notes_kb.config import load_config
from notes_kb.errors import NotFound
from notes_kb.index.lexical import NoteSearchIndex
from notes_kb.logging_utils import setup_logging
from notes_kb.store.notes import NoteStore
from notes_kb.utils.log import EventLog
from notes_kb.utils.output import write_export

logger = logging.getLogger(__name__)


def _load_store(path: Path) -> NoteStore:
    if not path.exists():
        raise SystemExit(f"No note store at {path}; run `ingest` first.")
    return NoteStore.load(path)


def _print_entry(entry) -> None:
    print(f"# {entry.topic_key}")
    print(f"(source: {entry.source_file or '?'})")
    if entry.body:
        print()
        print(entry.body)
    for ex in entry.examples:
        print()
        print(f"--- {ex.language} ---")
        print(ex.code)


def main():
    parser = argparse.ArgumentParser(
        prog="notes-kb",
        description="Ingest Markdown notes into a deduplicated, searchable topic store.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable DEBUG logs (to stderr)."
    )
    parser.add_argument("--quiet", "-q", action="store_true", help="Reduce logs to WARN and above.")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines (stderr).")
    parser.add_argument(
        "--config", type=str, default=None, help="Config YAML (default: $NOTES_KB_CONFIG or config.yaml)"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    # -----------------------
    # ingest
    # -----------------------
    p_ing = sub.add_parser("ingest", help="Ingest note files or folders")
    p_ing.add_argument("paths", nargs="+", help="Markdown files or folders")
    p_ing.add_argument(
        "--store", type=str, default=None, help="Snapshot path (overrides store.path)"
    )
    p_ing.add_argument("--out", type=str, default=None, help="Also export entries to this file")
    p_ing.add_argument("--format", type=str, default=None, choices=["json", "md"])

    # -----------------------
    # list / show / search / export
    # -----------------------
    p_ls = sub.add_parser("list", help="List stored topics")
    p_ls.add_argument("--store", type=str, default=None)

    p_show = sub.add_parser("show", help="Show one topic, e.g. 'JavaScript > Hoisting'")
    p_show.add_argument("topic", type=str)
    p_show.add_argument("--store", type=str, default=None)
    p_show.add_argument("--provenance", action="store_true", help="Also list contributing files")

    p_s = sub.add_parser("search", help="BM25 search over stored notes")
    p_s.add_argument("query", type=str)
    p_s.add_argument("--k", type=int, default=10, help="Max hits (default 10)")
    p_s.add_argument("--store", type=str, default=None)

    p_x = sub.add_parser("export", help="Export stored notes")
    p_x.add_argument("--out", type=str, required=True)
    p_x.add_argument("--format", type=str, default=None, choices=["json", "md"])
    p_x.add_argument("--store", type=str, default=None)

    args = parser.parse_args()
    cfg = load_config(args.config)

    # ----- logging setup -----
    if args.verbose and args.quiet:
        print("Cannot use --verbose and --quiet together.", file=sys.stderr)
        sys.exit(2)
    if args.verbose:
        setup_logging(level="DEBUG", json_logs=args.log_json)
    elif args.quiet:
        setup_logging(level="WARNING", json_logs=args.log_json)
    else:
        setup_logging(level=None, json_logs=args.log_json)

    logger.debug("CLI args parsed: %s", vars(args))
    store_path = Path(args.store) if args.store else cfg.store.path

    if args.cmd == "ingest":
        try:
            store, report = build_note_store(args.paths, cfg, events=EventLog(cfg.log.event_log))
            store.save(store_path)
        except Exception as e:
            logger.exception("Ingest failed: %s", e)
            sys.exit(2)
        print(report.summary())
        for err in report.failed.values():
            print(f"  failed: {err}")
        print(f"Store: {store_path.resolve()}")
        if args.out:
            target = write_export(store.list(), args.out, args.format)
            print(f"[saved] {target}")
        sys.exit(0)

    store = _load_store(store_path)

    if args.cmd == "list":
        for entry in store:
            print(entry.topic_key)

    elif args.cmd == "show":
        try:
            entry = store.get(args.topic)
        except NotFound as e:
            logger.error("%s", e)
            sys.exit(1)
        _print_entry(entry)
        if args.provenance:
            print()
            for p in store.provenance(args.topic):
                print(f"- {p.source_file} @ {(p.revision or '?')[:12]}")

    elif args.cmd == "search":
        index = NoteSearchIndex().build(store.list())
        hits = index.search(args.query, top_k=args.k)
        if not hits:
            print("No matches.")
        for h in hits:
            print(f"{h.score:7.3f}  {h.topic_key}")

    elif args.cmd == "export":
        target = write_export(store.list(), args.out, args.format)
        print(f"[saved] {target}")

    else:
        parser.print_help()


if __name__ == "__main__":
    main()
