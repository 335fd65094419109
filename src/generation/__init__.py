"""
Answer generation module for RAG pipeline.

- Context building from retrieved chunks (citation markers [1], [2], ...)
- Answer generation with source citations
- Citation extraction from model output
"""

from .citations import build_sources, extract_citations
from .config import GenerationConfig
from .context_builder import build_context
from .generator import AnswerGenerator, GeneratedAnswer
from .prompts import SYSTEM_PROMPT

__all__ = [
    "build_context",
    "build_sources",
    "extract_citations",
    "GenerationConfig",
    "SYSTEM_PROMPT",
    "AnswerGenerator",
    "GeneratedAnswer",
]
