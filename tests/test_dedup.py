import pytest
from pydantic import ValidationError

from notes_kb.index.schema import NoteEntry
from notes_kb.merge.dedup import is_duplicate, normalize_body, resolve, token_overlap


def _entry(body, source, path=("JavaScript", "Hoisting")):
    return NoteEntry(topic_path=path, body=body, source_file=source)


def test_normalize_body_collapses_whitespace():
    assert normalize_body("  a\n\n b\t c  ") == "a b c"


def test_token_overlap_edges():
    assert token_overlap("", "   ") == 1.0
    assert token_overlap("a", "") == 0.0
    assert token_overlap("a b c", "a b c d e") == pytest.approx(0.6)


def test_trailing_whitespace_only_difference_merges():
    a = _entry("Var declarations are hoisted.", "a.md")
    b = _entry("Var declarations are hoisted.   \n\n", "b.md")
    d = resolve(a, b)
    assert d.merged
    assert d.overlap == 1.0
    # equal normalized length: the earlier entry stays
    assert d.winner is a
    assert d.loser is b


def test_longer_body_wins():
    a = _entry("let and const are hoisted but not initialized", "a.md")
    b = _entry("let and const are hoisted but not initialized before declaration", "b.md")
    d = resolve(a, b)
    assert d.merged
    assert d.winner is b
    assert resolve(b, a).winner is b


def test_tie_break_follows_input_order():
    a = _entry("same words here", "a.md")
    b = _entry("same  words here", "b.md")
    assert resolve(a, b).winner is a
    assert resolve(b, a).winner is b


def test_resolve_is_deterministic():
    a = _entry("let and const are hoisted", "a.md")
    b = _entry("let and const are hoisted too", "b.md")
    assert resolve(a, b) == resolve(a, b)


def test_threshold_is_strict():
    a = _entry("a b c", "a.md")
    b = _entry("a b c d e", "b.md")
    assert not resolve(a, b, threshold=0.6).merged
    assert resolve(a, b, threshold=0.5).merged


def test_non_duplicates_last_write_wins():
    a = _entry("Alpha beta gamma", "a.md")
    b = _entry("Completely different words", "b.md")
    d = resolve(a, b)
    assert not d.merged
    assert d.winner is b


def test_different_topics_never_merge():
    a = _entry("same body", "a.md", path=("React", "Hooks"))
    b = _entry("same body", "b.md", path=("React", "Fiber"))
    assert not is_duplicate(a, b)
    with pytest.raises(ValueError):
        resolve(a, b)


def test_resolve_does_not_mutate_entries():
    a = _entry("x y z", "a.md")
    b = _entry("x y z w", "b.md")
    resolve(a, b)
    assert a.body == "x y z" and b.body == "x y z w"
    with pytest.raises(ValidationError):
        a.body = "changed"


def test_topic_path_must_be_non_empty():
    with pytest.raises(ValidationError):
        NoteEntry(topic_path=(), body="x")
    with pytest.raises(ValidationError):
        NoteEntry(topic_path=("A", "  "), body="x")
