"""
Tests for LLM query expansion.
"""

from __future__ import annotations

import json

import pytest

from src.llm.client import ProviderRateLimitError
from src.rag.query_expander import QueryExpander, parse_variations


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('{"variations": ["a", "b"]}', ["a", "b"]),
        ('{"queries": ["x"]}', ["x"]),
        ('["one", "two"]', ["one", "two"]),
        ('{"variations": ["  padded  ", "", 3]}', ["padded"]),
        ('{"something": ["a"]}', []),
        ('"just a string"', []),
        ("not json at all", []),
        ("", []),
    ],
)
def test_parse_variations(raw, expected):
    assert parse_variations(raw) == expected


def test_expand_puts_original_first_and_caps_variations(make_llm):
    llm = make_llm([json.dumps({"variations": ["tyre plan", "compound choice", "pit timing"]})])
    queries = QueryExpander(llm).expand("tire strategy")

    assert queries == ["tire strategy", "tyre plan", "compound choice"]
    call = llm.calls[0]
    assert call["json_mode"] is True
    assert call["messages"] == [{"role": "user", "content": "tire strategy"}]


def test_expand_drops_echo_of_original(make_llm):
    llm = make_llm([json.dumps({"variations": ["tire strategy", "tyre plan"]})])
    assert QueryExpander(llm).expand("tire strategy") == ["tire strategy", "tyre plan"]


def test_malformed_output_returns_original_only(make_llm):
    llm = make_llm(["Sure! Here are some ideas: ..."])
    assert QueryExpander(llm).expand("drs rules") == ["drs rules"]


def test_provider_errors_propagate(make_llm):
    llm = make_llm(error=ProviderRateLimitError("rate limited"))
    with pytest.raises(ProviderRateLimitError):
        QueryExpander(llm).expand("drs rules")
