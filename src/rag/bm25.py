"""
BM25 keyword scorer over stored chunks.

Document frequency and term frequency use case-insensitive substring matching
on the raw chunk text and document length is measured in characters, so a term
also counts where it appears inside a longer word.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, Sequence

from .index import Chunk
from .utils import query_terms


@dataclass
class BM25Scorer:
    """Okapi BM25 over a corpus snapshot. Pure and deterministic."""

    k1: float = 1.2
    b: float = 0.75

    def idf(self, term: str, corpus: Sequence[Chunk]) -> float:
        n = len(corpus)
        df = sum(1 for c in corpus if term in c.content.lower())
        return math.log((n - df + 0.5) / (df + 0.5) + 1)

    def score(self, query: str, corpus: Sequence[Chunk]) -> Dict[str, float]:
        """
        Score every chunk against the query.

        Returns:
            Mapping chunk_id -> raw BM25 score. Chunks scoring zero are absent.
        """
        terms = query_terms(query)
        if not corpus or not terms:
            return {}

        avg_dl = sum(len(c.content) for c in corpus) / len(corpus)
        if avg_dl == 0:
            return {}

        idfs = {term: self.idf(term, corpus) for term in terms}
        patterns = {term: re.compile(re.escape(term), re.IGNORECASE) for term in terms}

        scores: Dict[str, float] = {}
        for chunk in corpus:
            dl = len(chunk.content)
            total = 0.0
            for term in terms:
                tf = len(patterns[term].findall(chunk.content))
                if tf == 0:
                    continue
                norm = self.k1 * (1 - self.b + self.b * (dl / avg_dl))
                total += idfs[term] * (tf * (self.k1 + 1)) / (tf + norm)
            if total > 0:
                scores[chunk.id] = total
        return scores
