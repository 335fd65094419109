"""
Shared fixtures: fresh storage, deterministic embeddings and a scripted LLM.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import pytest

from src.db.repository import InMemoryStorage

VOCAB = ("tire", "strategy", "drs", "pit", "verstappen", "regulation", "monaco")

MONACO_TEXT = (
    "Monaco tire strategy is dominated by track position. "
    "Most teams run a one-stop strategy from medium to hard tires. "
    "The undercut is weak here because the pit lane is slow."
)

DRS_TEXT = (
    "DRS may only open within one second of the car ahead at the detection point. "
    "Race Control can disable DRS in wet conditions."
)


class KeywordEmbeddings:
    """Deterministic bag-of-keywords embedding over a tiny vocabulary."""

    def __init__(self) -> None:
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        lowered = text.lower()
        return [float(lowered.count(term)) for term in VOCAB] + [0.1]


class ScriptedLLM:
    """Stands in for LLMClient.complete; replays replies or raises."""

    def __init__(self, replies: Sequence[str] = (), error: Optional[Exception] = None):
        self.replies = list(replies)
        self.error = error
        self.calls: List[dict] = []

    def complete(self, system_prompt, messages, max_tokens=1024, json_mode=False) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": list(messages),
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else ""


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def keyword_embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture
def make_llm():
    """Factory: make_llm(replies=[...], error=None) -> ScriptedLLM."""

    def _make(replies: Sequence[str] = (), error: Optional[Exception] = None) -> ScriptedLLM:
        return ScriptedLLM(replies=replies, error=error)

    return _make


@pytest.fixture
def monaco_text() -> str:
    return MONACO_TEXT


@pytest.fixture
def drs_text() -> str:
    return DRS_TEXT
