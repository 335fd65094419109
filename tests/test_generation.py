"""
Tests for RAG answer generation (context builder, sources, citation extraction).
"""

from __future__ import annotations

import pytest

from src.generation import (
    AnswerGenerator,
    GenerationConfig,
    build_context,
    build_sources,
    extract_citations,
)
from src.generation.prompts import FALLBACK_ANSWER, NO_CONTEXT
from src.rag.index import ChunkMetadata
from src.rag.retriever import RetrievedChunk


def _retrieved(cid: str, title: str, content: str, score: float, doc_type: str = "analysis") -> RetrievedChunk:
    return RetrievedChunk(
        id=cid,
        content=content,
        document_id=f"doc_{cid}",
        metadata=ChunkMetadata(
            document_title=title,
            document_type=doc_type,
            start_position=0,
            end_position=len(content),
        ),
        combined_score=score,
    )


@pytest.fixture
def sample_results() -> list[RetrievedChunk]:
    return [
        _retrieved("c1", "Monaco Strategy", "Track position is king at Monaco.", 0.9),
        _retrieved("c2", "DRS Rules", "DRS opens within one second.", 0.7, doc_type="rules"),
    ]


def test_build_context_has_citation_markers(sample_results):
    context = build_context(sample_results)
    assert context == (
        "[1] Monaco Strategy:\nTrack position is king at Monaco.\n\n"
        "[2] DRS Rules:\nDRS opens within one second."
    )


def test_build_context_empty():
    assert build_context([]) == ""


def test_build_sources(sample_results):
    sources = build_sources(sample_results)
    assert [s.chunk_id for s in sources] == ["c1", "c2"]
    assert sources[0].document_id == "doc_c1"
    assert sources[0].title == "Monaco Strategy"
    assert sources[0].relevance_score == 0.9
    assert sources[1].type == "rules"
    assert sources[1].excerpt == "DRS opens within one second."


def test_source_excerpt_truncated():
    long_text = "x" * 250
    (source,) = build_sources([_retrieved("c", "Long", long_text, 0.5)])
    assert source.excerpt == "x" * 200 + "..."


def test_extract_citations(sample_results):
    sources = build_sources(sample_results)
    cited = extract_citations("Start on mediums [2]. Track position wins [1][2]. See [7].", sources)
    assert [s.chunk_id for s in cited] == ["c1", "c2"]
    assert extract_citations("No markers here.", sources) == []
    assert extract_citations("[1]", []) == []


def test_generate_sends_context_history_and_query(make_llm, sample_results):
    llm = make_llm(["Go long on the hards [1]."])
    history = [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello!"},
    ]
    answer = AnswerGenerator(llm).generate("Best Monaco strategy?", history, sample_results)

    assert answer.response == "Go long on the hards [1]."
    assert [s.chunk_id for s in answer.sources] == ["c1", "c2"]
    assert [s.chunk_id for s in answer.cited] == ["c1"]

    call = llm.calls[0]
    assert "[1] Monaco Strategy:" in call["system_prompt"]
    assert call["messages"] == [*history, {"role": "user", "content": "Best Monaco strategy?"}]
    assert call["max_tokens"] == 1024
    assert call["json_mode"] is False


def test_generate_without_chunks_uses_no_context_notice(make_llm):
    llm = make_llm(["General knowledge answer."])
    answer = AnswerGenerator(llm).generate("Who won?", [], [])

    assert NO_CONTEXT in llm.calls[0]["system_prompt"]
    assert answer.sources == []


def test_generate_empty_reply_falls_back(make_llm, sample_results):
    answer = AnswerGenerator(make_llm([""])).generate("q", [], sample_results)
    assert answer.response == FALLBACK_ANSWER


def test_generate_trims_history(make_llm):
    llm = make_llm(["ok"])
    history = [{"role": "user", "content": f"m{i}"} for i in range(6)]
    AnswerGenerator(llm, GenerationConfig(history_messages=3)).generate("q", history, [])

    sent = [m["content"] for m in llm.calls[0]["messages"]]
    assert sent == ["m3", "m4", "m5", "q"]


def test_generate_propagates_provider_errors(make_llm, sample_results):
    with pytest.raises(RuntimeError):
        AnswerGenerator(make_llm(error=RuntimeError("boom"))).generate("q", [], sample_results)
