from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..index.schema import NoteEntry

FORMATS = {"json", "md"}


def infer_format(out_path: Optional[str], fmt: Optional[str]) -> str:
    if fmt:
        fmt = fmt.lower()
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported format: {fmt}")
        return fmt
    if out_path:
        ext = Path(out_path).suffix.lower().lstrip(".")
        if ext in {"md", "markdown"}:
            return "md"
    return "json"


def _entry_dict(entry: NoteEntry) -> Dict[str, Any]:
    return {
        "topic": entry.topic_key,
        "topic_path": list(entry.topic_path),
        "body": entry.body,
        "examples": [{"language": ex.language, "code": ex.code} for ex in entry.examples],
        "source_file": entry.source_file,
        "revision": entry.revision,
    }


def as_json(entries: Sequence[NoteEntry]) -> str:
    return json.dumps({"entries": [_entry_dict(e) for e in entries]}, ensure_ascii=False, indent=2)


def _fence_for(code: str, language: str = "") -> str:
    # A backtick fence cannot carry a backtick in its info string
    ch = "~" if "`" in language else "`"
    # Fence must be longer than any run of its character inside the code
    longest = max((len(m) for m in re.findall(re.escape(ch) + "+", code)), default=0)
    return ch * max(3, longest + 1)


def as_markdown(entries: Sequence[NoteEntry]) -> str:
    """
    Re-emit entries as one Markdown document.

    Only the headings an entry needs are written, so exporting a store and
    ingesting the result gives back the same topic paths and example code.
    Provenance is not carried; use the JSON export for that.
    """
    lines: List[str] = []
    open_path: tuple = ()
    for e in entries:
        # Shared prefix with the previous entry's path is already on the page
        common = 0
        while (
            common < len(open_path)
            and common < len(e.topic_path) - 1
            and open_path[common] == e.topic_path[common]
        ):
            common += 1
        for depth in range(common, len(e.topic_path)):
            lines.append(f"{'#' * (depth + 1)} {e.topic_path[depth]}")
            lines.append("")
        open_path = e.topic_path
        if e.body:
            lines.append(e.body)
            lines.append("")
        for ex in e.examples:
            fence = _fence_for(ex.code, ex.language)
            lines.append(f"{fence}{ex.language}")
            lines.append(ex.code)
            lines.append(fence)
            lines.append("")
    return "\n".join(lines).strip() + "\n"


def write_export(entries: Sequence[NoteEntry], out_path: str, fmt: Optional[str] = None) -> Path:
    fmt2 = infer_format(out_path, fmt)
    target = Path(out_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    if fmt2 == "json":
        target.write_text(as_json(entries), encoding="utf-8")
    else:
        target.write_text(as_markdown(entries), encoding="utf-8")
    return target
