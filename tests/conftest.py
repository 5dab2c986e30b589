import sys
from pathlib import Path

import pytest

# Repo root = one level above tests/
REPO_ROOT = Path(__file__).resolve().parents[1]

# Ensure repo root is on sys.path so `notes_kb` and the root `cli` module import.
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def write_note(tmp_path):
    def _write(name: str, text: str) -> Path:
        p = tmp_path / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p

    return _write
