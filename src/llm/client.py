"""
LLM client for OpenAI-compatible APIs (chat completions and embeddings).
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, TypeVar

from dotenv import load_dotenv
from openai import OpenAI, RateLimitError

# Load .env file if it exists
project_root = Path(__file__).resolve().parents[2]
env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)


OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
LLM_BASE_URL = os.getenv("LLM_BASE_URL")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProviderRateLimitError(RuntimeError):
    """A provider call stayed rate limited after every retry attempt."""


@dataclass
class RetryPolicy:
    """Exponential backoff for rate-limited provider calls."""

    max_attempts: int = 3
    base_delay: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds after the given 1-based failed attempt."""
        return self.base_delay * (2 ** (attempt - 1))


def is_rate_limit_error(exc: BaseException) -> bool:
    """True for openai.RateLimitError or any error carrying HTTP status 429."""
    if isinstance(exc, RateLimitError):
        return True
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    return status == 429


def call_with_backoff(
    fn: Callable[[], T],
    *,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "provider call",
) -> T:
    """
    Run fn, retrying only on rate-limit errors.

    Any other exception propagates on first occurrence. When the last attempt
    is still rate limited, ProviderRateLimitError is raised from it.
    """
    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        attempt += 1
        try:
            return fn()
        except Exception as e:
            if not is_rate_limit_error(e):
                raise
            if attempt >= policy.max_attempts:
                raise ProviderRateLimitError(
                    f"{label} rate limited after {policy.max_attempts} attempts"
                ) from e
            delay = policy.delay_for(attempt)
            logger.warning(
                "Rate limited on %s. Retrying in %.1f s (attempt %s/%s)",
                label,
                delay,
                attempt,
                policy.max_attempts,
            )
            sleep(delay)


def create_openai(api_key: Optional[str] = None, base_url: Optional[str] = None) -> OpenAI:
    """Build an OpenAI SDK client from args or env."""
    key = api_key or OPENAI_API_KEY
    if not key:
        raise ValueError("API key required. Set OPENAI_API_KEY.")
    return OpenAI(api_key=key, base_url=base_url or LLM_BASE_URL or None)


class LLMClient:
    """OpenAI-compatible chat client used for query expansion and answers."""

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model_name: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client or create_openai()
        self.model_name = model_name or LLM_MODEL
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    def complete(
        self,
        system_prompt: str,
        messages: List[Dict[str, str]],
        max_tokens: int = 1024,
        json_mode: bool = False,
    ) -> str:
        """
        Run one chat completion and return the message text ("" when empty).

        messages are role/content dicts appended after the system prompt.
        """
        create_kw: dict = {
            "model": self.model_name,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "max_completion_tokens": max_tokens,
        }
        if json_mode:
            create_kw["response_format"] = {"type": "json_object"}

        response = call_with_backoff(
            lambda: self.client.chat.completions.create(**create_kw),
            policy=self.retry_policy,
            sleep=self._sleep,
            label="chat completion",
        )
        if not response.choices:
            logger.warning("Empty response from chat completion API")
            return ""
        return (response.choices[0].message.content or "").strip()


def create_client(
    model_name: Optional[str] = None,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
) -> LLMClient:
    """Create an OpenAI-compatible chat client from args or env."""
    return LLMClient(client=create_openai(api_key, base_url), model_name=model_name)
