from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator

TOPIC_SEP = " > "


def topic_key(topic_path: Sequence[str]) -> str:
    """Display form of a topic path (``"A > B"``); not unique when titles contain ">"."""
    return TOPIC_SEP.join(topic_path)


def split_topic(topic: Union[str, Sequence[str]]) -> Tuple[str, ...]:
    if isinstance(topic, str):
        return tuple(p.strip() for p in topic.split(">") if p.strip())
    return tuple(topic)


class CodeExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: str = "text"
    code: str


class Provenance(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_file: str
    revision: Optional[str] = None


class NoteEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic_path: Tuple[str, ...]
    body: str = ""
    examples: Tuple[CodeExample, ...] = ()
    source_file: str = ""
    revision: Optional[str] = None   # sha256 of the source document

    @field_validator("topic_path")
    @classmethod
    def _non_empty_path(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if not v:
            raise ValueError("topic_path must not be empty")
        if any(not t.strip() for t in v):
            raise ValueError(f"blank title in topic_path {v!r}")
        return v

    @property
    def topic_key(self) -> str:
        return topic_key(self.topic_path)

    @property
    def provenance(self) -> Provenance:
        return Provenance(source_file=self.source_file, revision=self.revision)


class SearchHit(BaseModel):
    topic_key: str
    score: float
