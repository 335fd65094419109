"""
LLM-based query expansion for vector retrieval.

Asks the chat model for alternative phrasings of the user's question so that
semantic search can match passages worded differently.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List

from ..llm.client import LLMClient

logger = logging.getLogger(__name__)

EXPANSION_PROMPT = (
    "You are a Formula 1 expert. Generate 3 alternative phrasings of the user's "
    "question to improve search coverage. Focus on different F1 terminology and "
    'aspects. Return a JSON object of the form {"variations": ["...", "..."]}.'
)


def parse_variations(raw: str) -> List[str]:
    """
    Pull a list of phrasings out of model output.

    Accepts {"variations": [...]}, {"queries": [...]} or a bare JSON list.
    Returns [] for anything else.
    """
    try:
        data: Any = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if isinstance(data, dict):
        data = data.get("variations") or data.get("queries") or []
    if not isinstance(data, list):
        return []
    return [item.strip() for item in data if isinstance(item, str) and item.strip()]


@dataclass
class QueryExpander:
    """Thin wrapper over LLMClient producing query variants."""

    client: LLMClient
    max_variations: int = 2
    max_tokens: int = 256

    def expand(self, query: str) -> List[str]:
        """
        Return [query, *variations], at most max_variations extra.

        Malformed model output yields [query]. Provider errors propagate.
        """
        raw = self.client.complete(
            EXPANSION_PROMPT,
            [{"role": "user", "content": query}],
            max_tokens=self.max_tokens,
            json_mode=True,
        )
        variations = [v for v in parse_variations(raw) if v != query]
        if not variations:
            logger.debug("Query expansion returned no usable variations for %r", query)
        return [query, *variations[: self.max_variations]]
