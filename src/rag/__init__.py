"""
RAG (Retrieval-Augmented Generation) module.

Provides retrieval components for hybrid search over F1 document chunks:
- Sentence-based chunking with overlap and keyword extraction
- BM25 keyword scoring
- Vector scoring over stored embeddings
- LLM query expansion
- Weighted score fusion with keyword-boost reranking
"""

from .bm25 import BM25Scorer
from .chunker import chunk_document, extract_keywords
from .config import RAGConfig
from .dense import VectorSearcher, cosine_similarity
from .embeddings import EmbeddingProvider, OpenAIEmbeddings
from .fusion import fuse, normalize_scores
from .hybrid import HybridRetriever
from .index import (
    DOCUMENT_TYPES,
    Chunk,
    ChunkMetadata,
    Document,
    NewChunk,
    SourceCitation,
    load_documents,
)
from .query_expander import QueryExpander
from .reranker import KeywordBoostReranker
from .retriever import RetrievalReport, RetrievedChunk, Retriever, StageOutcome, StageStatus

__all__ = [
    "DOCUMENT_TYPES",
    "BM25Scorer",
    "Chunk",
    "ChunkMetadata",
    "Document",
    "EmbeddingProvider",
    "HybridRetriever",
    "KeywordBoostReranker",
    "NewChunk",
    "OpenAIEmbeddings",
    "QueryExpander",
    "RAGConfig",
    "RetrievalReport",
    "RetrievedChunk",
    "Retriever",
    "SourceCitation",
    "StageOutcome",
    "StageStatus",
    "VectorSearcher",
    "chunk_document",
    "cosine_similarity",
    "extract_keywords",
    "fuse",
    "load_documents",
    "normalize_scores",
]
