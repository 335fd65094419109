"""
Unified retriever interface for RAG pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Protocol

from .index import ChunkMetadata


@dataclass
class RetrievedChunk:
    """A chunk scored for one query. Transient, never persisted."""

    id: str
    content: str
    document_id: str
    metadata: ChunkMetadata
    vector_score: float = 0.0
    bm25_score: float = 0.0
    combined_score: float = 0.0


class StageStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    SKIPPED = "skipped"


@dataclass
class StageOutcome:
    """How one optional retrieval stage (expansion, vector search) went."""

    status: StageStatus
    detail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == StageStatus.OK


@dataclass
class RetrievalReport:
    """Ranked results plus the outcome of each degradable stage."""

    results: List[RetrievedChunk]
    queries: List[str] = field(default_factory=list)
    expansion: StageOutcome = field(default_factory=lambda: StageOutcome(StageStatus.SKIPPED))
    vector: StageOutcome = field(default_factory=lambda: StageOutcome(StageStatus.SKIPPED))

    @property
    def degraded(self) -> bool:
        return StageStatus.DEGRADED in (self.expansion.status, self.vector.status)


class Retriever(Protocol):
    """Protocol for retrieval implementations."""

    def retrieve(self, query: str, top_k: int = 5) -> List[RetrievedChunk]:
        """
        Retrieve chunks matching the query.

        Args:
            query: User query string
            top_k: Maximum number of results to return

        Returns:
            List of RetrievedChunk sorted by combined_score (descending)
        """
        ...
