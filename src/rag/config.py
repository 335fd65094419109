"""
Configuration for RAG retrieval pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")


@dataclass
class RAGConfig:
    """Configuration for RAG chunking, scoring and fusion."""

    chunk_size: int = 500
    chunk_overlap: int = 100
    top_k: int = 5
    bm25_k1: float = 1.2
    bm25_b: float = 0.75
    vector_weight: float = 0.6
    bm25_weight: float = 0.4
    boost_step: float = 0.1
    score_floor: float = 0.001
    max_variations: int = 2
    use_query_expansion: bool = True
    embedding_model: str = EMBEDDING_MODEL
    embedding_workers: int = 4
