"""
Context builder for RAG answer generation.

Formats retrieved chunks into LLM-ready text with citation markers [1], [2], ...
so the model can cite sources and we can map citations back to chunk IDs.
"""

from __future__ import annotations

from typing import List

from src.rag.retriever import RetrievedChunk


def build_context(chunks: List[RetrievedChunk]) -> str:
    """
    Format retrieved chunks into a single context string with citation markers.

    Args:
        chunks: Retrieved chunks (order preserved; index + 1 = citation number).

    Returns:
        Blocks like "[1] <document title>:\\n<content>" separated by blank lines,
        or "" when there are no chunks.
    """
    if not chunks:
        return ""
    return "\n\n".join(
        f"[{i}] {chunk.metadata.document_title}:\n{chunk.content}"
        for i, chunk in enumerate(chunks, 1)
    )
