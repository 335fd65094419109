"""
Dense vector scoring by cosine similarity over stored chunk embeddings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .index import Chunk
from .retriever import RetrievedChunk


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity in [-1, 1].

    Returns 0.0 when either vector is empty, the lengths differ, or a norm is zero.
    """
    if len(a) == 0 or len(a) != len(b):
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denominator = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denominator == 0.0:
        return 0.0
    sim = float(np.dot(va, vb)) / denominator
    return max(-1.0, min(1.0, sim))


@dataclass
class VectorSearcher:
    """Linear-scan vector search over chunks that already carry an embedding."""

    def search(
        self,
        query_embedding: Sequence[float],
        chunks: Sequence[Chunk],
        top_k: int = 5,
    ) -> List[RetrievedChunk]:
        """Return the top_k embedded chunks by similarity, highest first."""
        scored: List[RetrievedChunk] = []
        for chunk in chunks:
            if not chunk.has_embedding:
                continue
            sim = cosine_similarity(query_embedding, chunk.embedding or [])
            scored.append(
                RetrievedChunk(
                    id=chunk.id,
                    content=chunk.content,
                    document_id=chunk.document_id,
                    metadata=chunk.metadata,
                    vector_score=sim,
                    bm25_score=0.0,
                    combined_score=sim,
                )
            )
        scored.sort(key=lambda r: r.vector_score, reverse=True)
        return scored[:top_k]
