import re

_WS_RE = re.compile(r"\s+")


def normalize_newlines(s: str) -> str:
    if not s:
        return s
    # Normalize Windows / old Mac line endings
    s = s.replace("\r\n", "\n").replace("\r", "\n")
    # Drop a leading BOM
    return s.lstrip("\ufeff")


def clean_body(lines: list[str]) -> str:
    """Prose lines of one section -> body text."""
    s = "\n".join(ln.rstrip() for ln in lines)
    s = s.replace("\u00a0", " ")  # nbsp -> space
    # Trim excessive blank lines
    s = re.sub(r"\n{3,}", "\n\n", s)
    return s.strip("\n")


def collapse_whitespace(s: str) -> str:
    return _WS_RE.sub(" ", s or "").strip()
