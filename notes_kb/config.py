from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError


class IngestConfig(BaseModel):
    strict_nesting: bool = True     # reject headings that skip a level
    keep_empty: bool = False        # emit entries for headings with no body/examples
    extensions: List[str] = Field(default_factory=lambda: [".md", ".markdown"])


class DedupConfig(BaseModel):
    threshold: float = Field(default=0.6, ge=0.0, le=1.0)


class StoreConfig(BaseModel):
    path: Path = Field(default=Path("index") / "notes.jsonl")


class LogConfig(BaseModel):
    event_log: Path = Field(default=Path("logs") / "ingest.log.jsonl")


class AppConfig(BaseModel):
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    log: LogConfig = Field(default_factory=LogConfig)


def load_config(path: Optional[str | Path] = None) -> AppConfig:
    """
    Load configuration from a YAML file.

    If `path` is None, uses $NOTES_KB_CONFIG, then `config.yaml` in the current
    working directory. Also loads environment variables from a `.env` file if present.
    """
    load_dotenv()

    if path is None:
        path = os.getenv("NOTES_KB_CONFIG") or "config.yaml"
    path = Path(path)

    if not path.exists():
        # Fall back to defaults if no config file is present.
        return AppConfig()

    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    try:
        return AppConfig(**raw)
    except (ValidationError, TypeError) as e:
        raise SystemExit(f"Invalid configuration in {path}:\n{e}") from e


__all__ = ["AppConfig", "DedupConfig", "IngestConfig", "LogConfig", "StoreConfig", "load_config"]
