from __future__ import annotations

from typing import Optional, Sequence


class NotesError(Exception):
    """Base class for knowledge-base errors."""


class ParseError(NotesError, ValueError):
    """Malformed note document (unterminated fence, bad heading nesting)."""

    def __init__(self, message: str, source_file: str = "", line: Optional[int] = None):
        self.source_file = source_file
        self.line = line
        where = source_file or "<text>"
        if line is not None:
            where = f"{where}:{line}"
        super().__init__(f"{where}: {message}")


class NotFound(NotesError, LookupError):
    """No entry is stored under the requested topic path."""

    def __init__(self, topic_path: Sequence[str]):
        self.topic_path = tuple(topic_path)
        key = " > ".join(self.topic_path) or "<empty topic path>"
        super().__init__(f"topic not found: {key}")
