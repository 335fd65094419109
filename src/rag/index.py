"""
Core data model and loading utilities for RAG over F1 documents.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional


ROOT = Path(__file__).resolve().parents[2]
SAMPLE_DOCUMENTS_PATH = Path(
    os.getenv("SAMPLE_DOCUMENTS_PATH", str(ROOT / "data" / "sample_documents.jsonl"))
)

DOCUMENT_TYPES = ("article", "analysis", "rules", "performance", "news")


def validate_document_type(value: str) -> str:
    """Return value if it is a known document type, else raise ValueError."""
    if value not in DOCUMENT_TYPES:
        raise ValueError(
            f"Unknown document type {value!r}; expected one of {', '.join(DOCUMENT_TYPES)}"
        )
    return value


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclasses.dataclass
class Document:
    """An ingested F1 document. Immutable once created, except for deletion."""

    id: str
    title: str
    content: str
    type: str
    source: Optional[str] = None
    url: Optional[str] = None
    created_at: dt.datetime = dataclasses.field(default_factory=utcnow)


@dataclasses.dataclass
class ChunkMetadata:
    """Positional and descriptive metadata attached to each chunk."""

    document_title: str
    document_type: str
    start_position: int
    end_position: int
    keywords: List[str] = dataclasses.field(default_factory=list)
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkMetadata":
        return cls(
            document_title=data.get("document_title", ""),
            document_type=data.get("document_type", ""),
            start_position=int(data.get("start_position", 0)),
            end_position=int(data.get("end_position", 0)),
            keywords=list(data.get("keywords") or []),
            source=data.get("source"),
        )


@dataclasses.dataclass
class NewChunk:
    """Chunk payload before storage assigns an id."""

    document_id: str
    content: str
    chunk_index: int
    metadata: ChunkMetadata
    embedding: Optional[List[float]] = None


@dataclasses.dataclass
class Chunk:
    """A stored passage of a document, the unit of retrieval."""

    id: str
    document_id: str
    content: str
    chunk_index: int
    metadata: ChunkMetadata
    embedding: Optional[List[float]] = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


@dataclasses.dataclass
class SourceCitation:
    """A retrieved passage as shown to the user alongside an answer."""

    document_id: str
    chunk_id: str
    title: str
    excerpt: str
    relevance_score: float
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceCitation":
        return cls(
            document_id=data["document_id"],
            chunk_id=data["chunk_id"],
            title=data.get("title", ""),
            excerpt=data.get("excerpt", ""),
            relevance_score=float(data.get("relevance_score", 0.0)),
            type=data.get("type", ""),
        )


def load_documents(path: Path | None = None) -> List[Dict[str, Any]]:
    """
    Load document payloads (title, content, type, source, url) from a JSONL file.

    Blank lines are skipped. Each payload's type is validated.
    """
    if path is None:
        path = SAMPLE_DOCUMENTS_PATH
    if not path.exists():
        raise FileNotFoundError(f"sample documents not found at {path}")

    documents: List[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            obj = json.loads(line)
            documents.append(
                {
                    "title": obj["title"],
                    "content": obj["content"],
                    "type": validate_document_type(obj["type"]),
                    "source": obj.get("source"),
                    "url": obj.get("url"),
                }
            )
    return documents
