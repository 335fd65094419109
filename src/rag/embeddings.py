"""
Embedding providers: text in, fixed-length vector out.
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional, Protocol

from openai import OpenAI

from ..llm.client import RetryPolicy, call_with_backoff, create_openai
from .config import EMBEDDING_MODEL


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers."""

    def embed(self, text: str) -> List[float]:
        """Generate embedding for a single text."""
        ...


class OpenAIEmbeddings:
    """
    OpenAI embedding provider (text-embedding-3-small by default).

    Rate-limited calls are retried with exponential backoff; exhausting the
    retries raises ProviderRateLimitError. Other errors propagate unchanged.
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: str = EMBEDDING_MODEL,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._client = client or create_openai()
        self.model = model
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    def embed(self, text: str) -> List[float]:
        response = call_with_backoff(
            lambda: self._client.embeddings.create(model=self.model, input=text),
            policy=self.retry_policy,
            sleep=self._sleep,
            label="embedding",
        )
        return list(response.data[0].embedding)
