"""
Tests for the FastAPI routes.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.deps import Services, build_services
from src.api.main import create_app
from src.db.repository import InMemoryStorage
from src.generation import AnswerGenerator
from src.llm.client import ProviderRateLimitError
from src.orchestrator import DocumentIngestor, RAGAgent
from src.rag import HybridRetriever, QueryExpander


def _services(llm=None, embeddings=None, expander=None, seed=False) -> Services:
    storage = InMemoryStorage()
    retriever = HybridRetriever(storage, embeddings=embeddings, expander=expander)
    agent = RAGAgent(storage, retriever, AnswerGenerator(llm)) if llm is not None else None
    return Services(
        storage=storage,
        retriever=retriever,
        ingestor=DocumentIngestor(storage, embeddings=embeddings),
        agent=agent,
        seed_on_startup=seed,
    )


@pytest.fixture
def services(make_llm, keyword_embeddings) -> Services:
    return _services(llm=make_llm(["Stay out on the hards [1]."]), embeddings=keyword_embeddings)


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as c:
        yield c


def _upload(client, title="Monaco Strategy", content=None, type="analysis", **extra):
    if content is None:
        content = (
            "Monaco tire strategy is dominated by track position. "
            "Most teams run a one-stop strategy from medium to hard tires."
        )
    r = client.post("/api/documents", json={"title": title, "content": content, "type": type, **extra})
    assert r.status_code == 200, r.text
    return r.json()


def test_health_counts(client):
    _upload(client)
    r = client.get("/api/health")
    assert r.status_code == 200
    data = r.json()
    assert data == {
        "status": "ok",
        "documents": 1,
        "chunks": 1,
        "embedded_chunks": 1,
        "chat_available": True,
    }


def test_upload_and_list_documents(client):
    doc = _upload(client, source="Pit Wall", url="https://example.com/monaco")
    assert doc["title"] == "Monaco Strategy"
    assert doc["type"] == "analysis"
    assert doc["source"] == "Pit Wall"
    assert doc["url"].startswith("https://example.com/monaco")

    listed = client.get("/api/documents").json()
    assert [d["id"] for d in listed] == [doc["id"]]


def test_upload_validation(client):
    r = client.post("/api/documents", json={"title": "X", "content": "Y", "type": "blog"})
    assert r.status_code == 422
    r = client.post("/api/documents", json={"title": "X", "type": "news"})
    assert r.status_code == 422


def test_document_chunks(client):
    doc = _upload(client)
    r = client.get(f"/api/documents/{doc['id']}/chunks")
    assert r.status_code == 200
    chunks = r.json()
    assert len(chunks) == 1
    assert chunks[0]["chunk_index"] == 0
    assert chunks[0]["has_embedding"] is True
    assert chunks[0]["metadata"]["document_title"] == "Monaco Strategy"
    assert "monaco" in chunks[0]["metadata"]["keywords"]

    assert client.get("/api/documents/missing/chunks").status_code == 404


def test_delete_document(client):
    doc = _upload(client)
    r = client.delete(f"/api/documents/{doc['id']}")
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert client.get("/api/documents").json() == []
    assert client.get("/api/health").json()["chunks"] == 0
    assert client.delete(f"/api/documents/{doc['id']}").status_code == 404


def test_conversation_crud(client):
    conv = client.post("/api/conversations", json={}).json()
    assert conv["title"] == "New Conversation"

    named = client.post("/api/conversations", json={"title": "Race prep"}).json()
    ids = {c["id"] for c in client.get("/api/conversations").json()}
    assert ids == {conv["id"], named["id"]}

    assert client.get(f"/api/conversations/{conv['id']}/messages").json() == []
    assert client.delete(f"/api/conversations/{conv['id']}").json() == {"success": True}
    assert client.get(f"/api/conversations/{conv['id']}/messages").status_code == 404
    assert client.delete(f"/api/conversations/{conv['id']}").status_code == 404


def test_chat_flow(client):
    _upload(client)
    conv = client.post("/api/conversations", json={}).json()

    r = client.post("/api/chat", json={"message": "Monaco tire strategy?", "conversation_id": conv["id"]})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["message"]["role"] == "assistant"
    assert data["message"]["content"] == "Stay out on the hards [1]."
    assert data["sources"][0]["title"] == "Monaco Strategy"
    assert data["message"]["sources"] == data["sources"]

    messages = client.get(f"/api/conversations/{conv['id']}/messages").json()
    assert [m["role"] for m in messages] == ["user", "assistant"]
    titles = {c["id"]: c["title"] for c in client.get("/api/conversations").json()}
    assert titles[conv["id"]] == "Monaco tire strategy?"


def test_chat_requires_conversation_id(client):
    r = client.post("/api/chat", json={"message": "hi"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Conversation ID required"


def test_chat_validation_and_unknown_conversation(client):
    assert client.post("/api/chat", json={}).status_code == 422
    r = client.post("/api/chat", json={"message": "hi", "conversation_id": "missing"})
    assert r.status_code == 404


def test_chat_provider_failure_returns_500(make_llm):
    services = _services(llm=make_llm(error=ProviderRateLimitError("rate limited")))
    with TestClient(create_app(services)) as c:
        conv = c.post("/api/conversations", json={}).json()
        r = c.post("/api/chat", json={"message": "hi", "conversation_id": conv["id"]})
    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to process chat message"


def test_chat_unavailable_without_llm():
    with TestClient(create_app(_services())) as c:
        conv = c.post("/api/conversations", json={}).json()
        r = c.post("/api/chat", json={"message": "hi", "conversation_id": conv["id"]})
        assert r.status_code == 503
        assert c.get("/api/health").json()["chat_available"] is False


def test_search_reports_stages(client, drs_text):
    _upload(client)
    _upload(client, title="DRS Rules", content=drs_text, type="rules")

    r = client.post("/api/search", json={"query": "DRS wet conditions", "top_k": 1})
    assert r.status_code == 200
    data = r.json()
    assert data["query"] == "DRS wet conditions"
    assert len(data["results"]) == 1
    hit = data["results"][0]
    assert hit["metadata"]["document_title"] == "DRS Rules"
    assert 0.0 <= hit["combined_score"] <= 1.0
    assert data["vector"]["status"] == "ok"
    assert data["expansion"]["status"] == "skipped"


def test_search_degraded_expansion_still_answers(make_llm):
    expander = QueryExpander(make_llm(error=RuntimeError("llm down")))
    services = _services(expander=expander)
    with TestClient(create_app(services)) as c:
        _upload(c)
        r = c.post("/api/search", json={"query": "monaco tire strategy"})
    assert r.status_code == 200
    data = r.json()
    assert data["expansion"]["status"] == "degraded"
    assert data["vector"]["status"] == "skipped"
    assert data["results"]


def test_search_validation(client):
    assert client.post("/api/search", json={}).status_code == 422
    assert client.post("/api/search", json={"query": "drs", "top_k": 0}).status_code == 422
    assert client.post("/api/search", json={"query": "drs", "top_k": 50}).status_code == 422


def test_startup_seeds_sample_documents():
    services = _services(seed=True)
    with TestClient(create_app(services)) as c:
        assert c.get("/api/health").json()["documents"] == 5


def test_build_services_without_api_key():
    services = build_services(storage=InMemoryStorage(), api_key=None)
    assert services.agent is None
    assert services.retriever.embeddings is None
    assert services.ingestor.embeddings is None


def test_build_services_with_api_key(monkeypatch):
    fake_openai = MagicMock()
    monkeypatch.setattr("src.llm.client.OpenAI", MagicMock(return_value=fake_openai))
    services = build_services(storage=InMemoryStorage(), api_key="sk-test")

    assert services.agent is not None
    assert services.retriever.embeddings is not None
    assert services.retriever.expander is not None
    assert services.ingestor.embeddings is services.retriever.embeddings
