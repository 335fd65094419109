"""Configuration for answer generation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class GenerationConfig:
    """Settings for RAG answer generation."""

    max_tokens: int = 1024
    history_messages: int = 10
    expansion_max_tokens: int = 256
