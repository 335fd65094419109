"""
Weighted linear fusion of vector and BM25 scores.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import RAGConfig
from .index import Chunk
from .reranker import KeywordBoostReranker
from .retriever import RetrievedChunk


def normalize_scores(scores: Mapping[str, float], floor: float = 0.001) -> Dict[str, float]:
    """Divide every score by the map's maximum, never by less than floor."""
    max_score = max([*scores.values(), floor])
    return {cid: s / max_score for cid, s in scores.items()}


def fusion_weights(has_vector_scores: bool, config: RAGConfig) -> Tuple[float, float]:
    """(vector_weight, bm25_weight); pure keyword weighting when vector search produced nothing."""
    if has_vector_scores:
        return config.vector_weight, config.bm25_weight
    return 0.0, 1.0


def fuse(
    vector_scores: Mapping[str, float],
    bm25_scores: Mapping[str, float],
    chunks: Sequence[Chunk],
    query: str,
    top_k: int,
    config: Optional[RAGConfig] = None,
    reranker: Optional[KeywordBoostReranker] = None,
) -> List[RetrievedChunk]:
    """
    Combine both score maps over the corpus, boost, and return the top_k.

    Negative similarities count as zero. Chunks with no positive combined score
    are dropped. Ties keep corpus order. A top_k below 1 returns nothing.
    """
    if top_k <= 0:
        return []
    config = config or RAGConfig()
    reranker = reranker or KeywordBoostReranker(step=config.boost_step)

    clipped = {cid: max(0.0, s) for cid, s in vector_scores.items()}
    norm_vector = normalize_scores(clipped, config.score_floor)
    norm_bm25 = normalize_scores(bm25_scores, config.score_floor)
    vector_weight, bm25_weight = fusion_weights(bool(vector_scores), config)

    candidates: List[RetrievedChunk] = []
    for chunk in chunks:
        v = norm_vector.get(chunk.id, 0.0) if vector_weight > 0 else 0.0
        k = norm_bm25.get(chunk.id, 0.0)
        combined = vector_weight * v + bm25_weight * k
        if combined <= 0:
            continue
        candidates.append(
            RetrievedChunk(
                id=chunk.id,
                content=chunk.content,
                document_id=chunk.document_id,
                metadata=chunk.metadata,
                vector_score=v,
                bm25_score=k,
                combined_score=combined,
            )
        )

    return reranker.rerank(query, candidates)[:top_k]
