"""
Hybrid retriever combining BM25 and vector search with weighted fusion.

Query expansion and vector search are best-effort: when either fails the request
continues with the original query and keyword scoring only. Both fallbacks are
logged and reported through RetrievalReport instead of being raised.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from .bm25 import BM25Scorer
from .config import RAGConfig
from .dense import VectorSearcher
from .embeddings import EmbeddingProvider
from .fusion import fuse
from .index import Chunk
from .query_expander import QueryExpander
from .reranker import KeywordBoostReranker
from .retriever import RetrievalReport, RetrievedChunk, StageOutcome, StageStatus

if TYPE_CHECKING:
    from src.db.repository import Storage

logger = logging.getLogger(__name__)


@dataclass
class HybridRetriever:
    """Retrieval orchestrator over the chunk corpus held by storage."""

    storage: "Storage"
    embeddings: Optional[EmbeddingProvider] = None
    expander: Optional[QueryExpander] = None
    config: RAGConfig = field(default_factory=RAGConfig)
    bm25: Optional[BM25Scorer] = None
    vector_searcher: VectorSearcher = field(default_factory=VectorSearcher)
    reranker: Optional[KeywordBoostReranker] = None

    def __post_init__(self) -> None:
        if self.bm25 is None:
            self.bm25 = BM25Scorer(k1=self.config.bm25_k1, b=self.config.bm25_b)
        if self.reranker is None:
            self.reranker = KeywordBoostReranker(step=self.config.boost_step)

    def retrieve(self, query: str, top_k: Optional[int] = None) -> List[RetrievedChunk]:
        """Return at most top_k chunks ranked by combined score."""
        return self.retrieve_with_report(query, top_k).results

    def retrieve_with_report(self, query: str, top_k: Optional[int] = None) -> RetrievalReport:
        """Retrieve and report how the expansion and vector stages went."""
        if top_k is None:
            top_k = self.config.top_k
        if top_k <= 0:
            return RetrievalReport(results=[], queries=[query])

        chunks = self.storage.list_chunks()
        if not chunks:
            return RetrievalReport(results=[], queries=[query])

        queries, expansion = self._expand(query)

        vector_scores: Dict[str, float] = {}
        if any(c.has_embedding for c in chunks):
            vector_scores, vector = self._vector_scores(queries, chunks, top_k * 2)
        else:
            vector = StageOutcome(StageStatus.SKIPPED, "no chunk embeddings stored")

        bm25_scores = self.bm25.score(query, chunks)

        results = fuse(
            vector_scores,
            bm25_scores,
            chunks,
            query,
            top_k,
            config=self.config,
            reranker=self.reranker,
        )
        return RetrievalReport(
            results=results,
            queries=queries,
            expansion=expansion,
            vector=vector,
        )

    def _expand(self, query: str) -> Tuple[List[str], StageOutcome]:
        if self.expander is None or not self.config.use_query_expansion:
            return [query], StageOutcome(StageStatus.SKIPPED, "query expansion disabled")
        try:
            queries = self.expander.expand(query)
        except Exception as e:
            logger.warning("Query expansion failed, using original query only: %s", e)
            return [query], StageOutcome(StageStatus.DEGRADED, str(e))
        if not queries:
            queries = [query]
        return queries, StageOutcome(StageStatus.OK, f"{len(queries) - 1} variations")

    def _vector_scores(
        self,
        queries: List[str],
        chunks: Sequence[Chunk],
        candidate_k: int,
    ) -> Tuple[Dict[str, float], StageOutcome]:
        """Best similarity per chunk across all query variants."""
        if self.embeddings is None:
            return {}, StageOutcome(StageStatus.SKIPPED, "no embedding provider configured")
        try:
            with ThreadPoolExecutor(max_workers=len(queries)) as pool:
                query_embeddings = list(pool.map(self.embeddings.embed, queries))
        except Exception as e:
            logger.warning("Vector search failed, falling back to BM25 only: %s", e)
            return {}, StageOutcome(StageStatus.DEGRADED, str(e))

        scores: Dict[str, float] = {}
        for embedding in query_embeddings:
            for hit in self.vector_searcher.search(embedding, chunks, candidate_k):
                scores[hit.id] = max(scores.get(hit.id, hit.vector_score), hit.vector_score)
        return scores, StageOutcome(StageStatus.OK, f"{len(scores)} chunks scored")
