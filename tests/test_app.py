from notes_kb.app import build_note_store, iter_note_files
from notes_kb.config import AppConfig
from notes_kb.store.notes import NoteStore
from notes_kb.utils.log import EventLog

HOISTING = "# JavaScript\n\n## Hoisting\n\nVar declarations are hoisted.{pad}\n"


def test_near_identical_documents_merge(write_note):
    a = write_note("a.md", HOISTING.format(pad="   "))
    b = write_note("b.md", HOISTING.format(pad=""))
    store, report = build_note_store([b, a], AppConfig())

    assert len(store) == 1
    entry = store.get(["JavaScript", "Hoisting"])
    assert entry.body == "Var declarations are hoisted."
    # a.md sorts first and ties keep the earlier file
    assert entry.source_file == str(a)
    assert report.merged == 1
    assert report.replaced == 0
    assert [p.source_file for p in store.provenance("JavaScript > Hoisting")] == [str(a), str(b)]


def test_longer_variant_wins_across_documents(tmp_path, write_note):
    write_note("a.md", "# React\n\n## Hooks\n\nHooks let function components hold state\n")
    write_note(
        "b.md",
        "# React\n\n## Hooks\n\nHooks let function components hold state and effects\n\n```jsx\nuseState(0)\n```\n",
    )
    write_note("c.md", "# Misc\n\nx\n")
    store, report = build_note_store([tmp_path], AppConfig())
    entry = store.get("React > Hooks")
    assert entry.source_file.endswith("b.md")
    assert entry.examples[0].code == "useState(0)"
    assert report.documents == 3
    assert report.merged == 1


def test_unrelated_bodies_last_write_wins(write_note):
    a = write_note("a.md", "# CSS\n\n## Grid\n\nAlpha beta gamma\n")
    b = write_note("b.md", "# CSS\n\n## Grid\n\nCompletely different words\n")
    store, report = build_note_store([a, b], AppConfig())
    assert store.get("CSS > Grid").source_file == str(b)
    assert report.replaced == 1


def test_parse_error_skips_document_and_continues(write_note, tmp_path):
    bad = write_note(
        "a_bad.md",
        "# CSS\n\n## Flexbox\n\nFlex stuff.\n\n## Box Model\n\n```css\n.box { margin: 0; }\n",
    )
    good = write_note("b_good.md", "# HTML\n\n## Defer\n\nDeferred scripts run in order.\n")
    events = EventLog(tmp_path / "logs" / "ingest.log.jsonl")

    store, report = build_note_store([bad, good], AppConfig(), events=events)

    assert [e.topic_key for e in store.list()] == ["HTML > Defer"]
    assert "CSS > Flexbox" not in store
    assert list(report.failed) == [str(bad)]
    assert "unterminated" in report.failed[str(bad)]
    logged = events.read()
    assert logged[0]["event"] == "parse_error"
    assert logged[0]["line"] == 9


def test_existing_store_is_extended(write_note):
    store = NoteStore()
    build_note_store([write_note("a.md", "# A\n\none\n")], AppConfig(), store=store)
    out, _ = build_note_store([write_note("b.md", "# B\n\ntwo\n")], AppConfig(), store=store)
    assert out is store
    assert [e.topic_key for e in store] == ["A", "B"]


def test_iter_note_files_filters_and_sorts(tmp_path, write_note):
    write_note("z.md", "# Z\n")
    write_note("sub/a.markdown", "# A\n")
    write_note("sub/notes.txt", "# T\n")
    files = iter_note_files([tmp_path, tmp_path / "missing"], [".md", ".markdown"])
    assert [f.name for f in files] == ["a.markdown", "z.md"]


def test_heading_with_separator_does_not_collide(write_note):
    doc = write_note(
        "react.md",
        "# React\n\n## Props > State\n\nProps flow down.\n\n## Props\n\n### State\n\nState is local.\n",
    )
    store, report = build_note_store([doc], AppConfig())
    assert report.failed == {}
    assert report.replaced == 0 and report.merged == 0
    assert [e.topic_path for e in store] == [("React", "Props > State"), ("React", "Props", "State")]
    assert store.get(("React", "Props > State")).body == "Props flow down."


def test_iter_note_files_same_name_orders_by_path(tmp_path, write_note):
    write_note("zeta/notes.md", "# Z\n")
    write_note("alpha/notes.md", "# A\n")
    write_note("mid/b.md", "# B\n")
    files = iter_note_files([tmp_path], [".md"])
    assert [f.relative_to(tmp_path).as_posix() for f in files] == [
        "mid/b.md",
        "alpha/notes.md",
        "zeta/notes.md",
    ]
