"""
Utility functions for RAG module.
"""

from __future__ import annotations

import re
from typing import List, Tuple

SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def query_terms(query: str) -> List[str]:
    """Lowercased whitespace tokens of the query, dropping tokens of length <= 2."""
    return [tok for tok in query.lower().split() if len(tok) > 2]


def excerpt(text: str, limit: int = 200) -> str:
    """First `limit` characters of text, with '...' appended if truncated."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def sentence_spans(text: str) -> List[Tuple[int, int]]:
    """(start, end) offsets of each sentence, splitting on whitespace after ".", "!" or "?"."""
    spans: List[Tuple[int, int]] = []
    start = 0
    for match in SENTENCE_SPLIT_RE.finditer(text):
        spans.append((start, match.start()))
        start = match.end()
    spans.append((start, len(text)))
    return spans
