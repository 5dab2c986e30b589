"""
Markdown note ingestion.

A document is split into topic entries keyed by heading path: every ATX
heading opens a topic whose path is the chain of enclosing headings, e.g.
``# JavaScript`` / ``## Event loop`` -> ``("JavaScript", "Event loop")``.
Fenced code blocks under a heading become that entry's examples; the
remaining prose is its body.
"""
from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from ..config import IngestConfig
from ..errors import ParseError
from ..index.schema import CodeExample, NoteEntry
from .clean import clean_body, normalize_newlines

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
FENCE_OPEN_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
FENCE_CLOSE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*$")


def sha256_of_text(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8", errors="ignore")).hexdigest()


class _Section:
    def __init__(self, topic_path: Tuple[str, ...], line_no: int):
        self.topic_path = topic_path
        self.line_no = line_no
        self.lines: List[str] = []
        self.examples: List[CodeExample] = []


class NoteDocument:
    """
    Lazy, restartable sequence of the entries in one document.

    Parsing happens on iteration; iterating again re-parses from the start and
    yields an identical sequence. Raises ParseError mid-iteration on the first
    malformed construct; entries already yielded stay valid.
    """

    def __init__(self, text: str, source_file: str = "", config: Optional[IngestConfig] = None):
        self.text = normalize_newlines(text)
        self.source_file = source_file
        self.config = config or IngestConfig()
        self.revision = sha256_of_text(self.text)

    def __iter__(self) -> Iterator[NoteEntry]:
        return self._parse()

    def __repr__(self) -> str:
        return f"NoteDocument({self.source_file!r}, revision={self.revision[:12]})"

    def _entry(self, sec: _Section) -> Optional[NoteEntry]:
        body = clean_body(sec.lines)
        if not body and not sec.examples and not self.config.keep_empty:
            return None
        return NoteEntry(
            topic_path=sec.topic_path,
            body=body,
            examples=tuple(sec.examples),
            source_file=self.source_file,
            revision=self.revision,
        )

    def _heading_path(
        self, stack: List[Tuple[int, str]], level: int, title: str, line_no: int
    ) -> Tuple[str, ...]:
        while stack and stack[-1][0] >= level:
            stack.pop()
        if stack and level > stack[-1][0] + 1 and self.config.strict_nesting:
            parent_level, parent = stack[-1]
            raise ParseError(
                f"heading level {level} {title!r} skips a level under "
                f"level {parent_level} {parent!r}",
                self.source_file,
                line_no,
            )
        stack.append((level, title))
        return tuple(t for _, t in stack)

    def _parse(self) -> Iterator[NoteEntry]:
        stack: List[Tuple[int, str]] = []
        section: Optional[_Section] = None
        preamble = False

        # open fence state: (char, length, indent, language, start line, code lines)
        fence: Optional[Tuple[str, int, int, str, int, List[str]]] = None

        for line_no, ln in enumerate(self.text.split("\n"), start=1):
            if fence is not None:
                ch, length, indent, lang, _, code = fence
                m = FENCE_CLOSE_RE.match(ln)
                if m and m.group(1)[0] == ch and len(m.group(1)) >= length:
                    if section is not None:
                        section.examples.append(CodeExample(language=lang, code="\n".join(code)))
                    fence = None
                else:
                    # Strip up to the opening fence's indent from content lines
                    strip = len(ln) - len(ln.lstrip(" "))
                    code.append(ln[min(indent, strip):])
                continue

            m = FENCE_OPEN_RE.match(ln)
            if m and not (m.group(2)[0] == "`" and "`" in m.group(3)):
                info = m.group(3).strip()
                lang = info.split()[0] if info else "text"
                fence = (m.group(2)[0], len(m.group(2)), len(m.group(1)), lang, line_no, [])
                continue

            m = HEADING_RE.match(ln)
            if m:
                title = (m.group(2) or "").strip()
                if not title:
                    raise ParseError("empty heading", self.source_file, line_no)
                if section is not None:
                    entry = self._entry(section)
                    if entry is not None:
                        yield entry
                path = self._heading_path(stack, len(m.group(1)), title, line_no)
                section = _Section(path, line_no)
                continue

            if section is None:
                if ln.strip():
                    preamble = True
                continue
            section.lines.append(ln)

        if fence is not None:
            raise ParseError(
                f"unterminated code fence {fence[0] * fence[1]}",
                self.source_file,
                fence[4],
            )

        if preamble:
            logger.debug("%s: text before the first heading discarded", self.source_file or "<text>")

        if section is not None:
            entry = self._entry(section)
            if entry is not None:
                yield entry


def ingest_text(text: str, source_file: str = "", config: Optional[IngestConfig] = None) -> NoteDocument:
    return NoteDocument(text, source_file=source_file, config=config)


def ingest_file(path: str | Path, config: Optional[IngestConfig] = None) -> NoteDocument:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"not valid UTF-8 ({e.reason})", str(path)) from e
    return NoteDocument(text, source_file=str(path), config=config)
