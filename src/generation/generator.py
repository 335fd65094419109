"""
Answer generator: builds context, calls LLM, returns answer text and sources.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from src.llm.client import LLMClient
from src.rag.index import SourceCitation
from src.rag.retriever import RetrievedChunk

from .citations import build_sources, extract_citations
from .config import GenerationConfig
from .context_builder import build_context
from .prompts import FALLBACK_ANSWER, NO_CONTEXT, SYSTEM_PROMPT


@dataclass
class GeneratedAnswer:
    """Result of RAG answer generation."""

    response: str
    sources: List[SourceCitation]

    @property
    def cited(self) -> List[SourceCitation]:
        """Sources the answer actually references with [n] markers."""
        return extract_citations(self.response, self.sources)


class AnswerGenerator:
    """Generate answers from a query, prior turns and retrieved chunks using the LLM."""

    def __init__(self, client: LLMClient, config: Optional[GenerationConfig] = None):
        self.client = client
        self.config = config or GenerationConfig()

    def generate(
        self,
        query: str,
        history: List[Dict[str, str]],
        chunks: List[RetrievedChunk],
    ) -> GeneratedAnswer:
        """history holds role/content dicts, oldest first; only the most recent are sent."""
        context = build_context(chunks) or NO_CONTEXT
        recent = history[-self.config.history_messages :] if self.config.history_messages else []
        messages = [{"role": m["role"], "content": m["content"]} for m in recent]
        messages.append({"role": "user", "content": query})

        answer = self.client.complete(
            SYSTEM_PROMPT.format(context=context),
            messages,
            max_tokens=self.config.max_tokens,
        )
        return GeneratedAnswer(
            response=answer or FALLBACK_ANSWER,
            sources=build_sources(chunks),
        )
