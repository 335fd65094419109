"""
Keyword-overlap reranker applied after score fusion.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .index import ChunkMetadata
from .retriever import RetrievedChunk

MAX_SCORE = 1.0


@dataclass
class KeywordBoostReranker:
    """
    Multiplies each fused score by 1 + step per metadata keyword found in the query.

    Boosts accumulate without a per-keyword limit; the boosted score is capped at 1.0.
    """

    step: float = 0.1

    def boost(self, metadata: ChunkMetadata, query: str) -> float:
        query_lower = query.lower()
        boost = 1.0
        for keyword in metadata.keywords:
            if keyword in query_lower:
                boost += self.step
        return boost

    def rerank(self, query: str, candidates: Iterable[RetrievedChunk]) -> List[RetrievedChunk]:
        """
        Boost and re-sort candidates by combined_score, highest first.

        The sort is stable, so equal scores keep their incoming order.
        """
        reranked: List[RetrievedChunk] = []
        for candidate in candidates:
            boosted = candidate.combined_score * self.boost(candidate.metadata, query)
            candidate.combined_score = min(boosted, MAX_SCORE)
            reranked.append(candidate)
        reranked.sort(key=lambda r: r.combined_score, reverse=True)
        return reranked
