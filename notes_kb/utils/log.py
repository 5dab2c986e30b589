from pathlib import Path
import datetime
import json


class EventLog:
    """Append-only JSON-lines file of ingest events (parse_error, merge, replace)."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, event: str, **fields):
        obj = {"ts": datetime.datetime.now().isoformat(timespec="seconds"), "event": event}
        obj.update(fields)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(obj, ensure_ascii=False) + "\n")

    def read(self) -> list:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [json.loads(ln) for ln in f if ln.strip()]
