"""
Build source citations from retrieved chunks and map [n] references back to them.
"""

from __future__ import annotations

import re
from typing import List

from src.rag.index import SourceCitation
from src.rag.retriever import RetrievedChunk
from src.rag.utils import excerpt

CITATION_RE = re.compile(r"\[(\d+)\]")


def build_sources(chunks: List[RetrievedChunk]) -> List[SourceCitation]:
    """One SourceCitation per chunk, in context order."""
    return [
        SourceCitation(
            document_id=chunk.document_id,
            chunk_id=chunk.id,
            title=chunk.metadata.document_title,
            excerpt=excerpt(chunk.content, 200),
            relevance_score=chunk.combined_score,
            type=chunk.metadata.document_type,
        )
        for chunk in chunks
    ]


def extract_citations(
    answer: str,
    sources: List[SourceCitation],
) -> List[SourceCitation]:
    """
    Parse [n] references in answer and return the cited sources.
    sources[0] -> [1], sources[1] -> [2], etc. Out-of-range markers are ignored.
    """
    if not sources:
        return []
    indices = set()
    for m in CITATION_RE.finditer(answer):
        n = int(m.group(1))
        if 1 <= n <= len(sources):
            indices.add(n)
    return [sources[n - 1] for n in sorted(indices)]
