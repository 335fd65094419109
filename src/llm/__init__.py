"""
LLM client module for OpenAI-compatible API integration.
"""

from .client import (
    LLMClient,
    ProviderRateLimitError,
    RetryPolicy,
    call_with_backoff,
    create_client,
    create_openai,
    is_rate_limit_error,
)

__all__ = [
    "LLMClient",
    "ProviderRateLimitError",
    "RetryPolicy",
    "call_with_backoff",
    "create_client",
    "create_openai",
    "is_rate_limit_error",
]
