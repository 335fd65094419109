"""
Tests for BM25 keyword scoring.
"""

from __future__ import annotations

import math

import pytest

from src.rag.bm25 import BM25Scorer
from src.rag.index import Chunk, ChunkMetadata
from src.rag.utils import query_terms


def _chunk(cid: str, text: str) -> Chunk:
    return Chunk(
        id=cid,
        document_id="doc",
        content=text,
        chunk_index=0,
        metadata=ChunkMetadata(
            document_title="Doc",
            document_type="article",
            start_position=0,
            end_position=len(text),
        ),
    )


@pytest.fixture
def corpus() -> list[Chunk]:
    return [
        _chunk("c1", "tire tire strategy"),
        _chunk("c2", "pit lane"),
        _chunk("c3", "Tire degradation at Monaco shapes the strategy."),
    ]


def test_query_terms_drop_short_tokens():
    assert query_terms("What is the best F1 tire strategy") == ["what", "the", "best", "tire", "strategy"]
    assert query_terms("an f1 of") == []


def test_score_matches_formula():
    """Scores follow idf * tf*(k1+1) / (tf + k1*(1 - b + b*dl/avgdl)) with character lengths."""
    chunks = [_chunk("a", "tire tire strategy"), _chunk("b", "pit lane")]
    scores = BM25Scorer().score("tire", chunks)

    n, df = 2, 1
    idf = math.log((n - df + 0.5) / (df + 0.5) + 1)
    avg_dl = (18 + 8) / 2
    tf, dl = 2, 18
    expected = idf * (tf * 2.2) / (tf + 1.2 * (1 - 0.75 + 0.75 * dl / avg_dl))

    assert scores == {"a": pytest.approx(expected)}


def test_chunk_without_query_terms_is_absent(corpus: list[Chunk]):
    scores = BM25Scorer().score("tire strategy", corpus)
    assert set(scores) == {"c1", "c3"}
    assert "c2" not in scores
    assert all(s > 0 for s in scores.values())


def test_score_is_deterministic(corpus: list[Chunk]):
    scorer = BM25Scorer()
    assert scorer.score("monaco tire strategy", corpus) == scorer.score("monaco tire strategy", corpus)


def test_matching_is_case_insensitive(corpus: list[Chunk]):
    scores = BM25Scorer().score("TIRE", corpus)
    assert set(scores) == {"c1", "c3"}


def test_higher_term_frequency_scores_higher():
    chunks = [
        _chunk("once", "tire notes for the race weekend"),
        _chunk("twice", "tire notes and tire data weekend"),
    ]
    scores = BM25Scorer().score("tire", chunks)
    assert scores["twice"] > scores["once"]


def test_substring_matches_count():
    """Terms are counted as substrings, so 'car' also matches inside 'care'."""
    chunks = [_chunk("care", "take care with the tyres"), _chunk("other", "nothing relevant")]
    scores = BM25Scorer().score("car", chunks)
    assert "care" in scores


def test_regex_characters_in_query_do_not_raise():
    chunks = [_chunk("c", "c++ (strategy) notes")]
    scores = BM25Scorer().score("c++ (strategy)", chunks)
    assert "c" in scores


@pytest.mark.parametrize("query", ["", "a an of", "   "])
def test_queries_without_terms_return_empty(corpus: list[Chunk], query: str):
    assert BM25Scorer().score(query, corpus) == {}


def test_empty_corpus_returns_empty():
    assert BM25Scorer().score("tire strategy", []) == {}
