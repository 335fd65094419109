"""
Build storage, retriever, ingestor and chat agent for the API (used in lifespan).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from src.db.repository import InMemoryStorage, Storage
from src.db.session import DATABASE_URL, make_engine
from src.db.sql_storage import SQLStorage
from src.generation import AnswerGenerator, GenerationConfig
from src.llm.client import OPENAI_API_KEY, create_client
from src.orchestrator import DocumentIngestor, RAGAgent
from src.rag import HybridRetriever, OpenAIEmbeddings, QueryExpander, RAGConfig

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the routes need, wired once per app."""

    storage: Storage
    retriever: HybridRetriever
    ingestor: DocumentIngestor
    agent: Optional[RAGAgent] = None
    seed_on_startup: bool = True


def get_storage(database_url: Optional[str] = DATABASE_URL) -> Storage:
    """SQL storage when a database URL is configured, in-memory otherwise."""
    if database_url:
        return SQLStorage(make_engine(database_url))
    return InMemoryStorage()


def build_services(
    storage: Optional[Storage] = None,
    api_key: Optional[str] = OPENAI_API_KEY,
) -> Services:
    """
    Wire the pipeline. Without an API key, retrieval runs keyword-only and
    chat is unavailable.
    """
    storage = storage or get_storage()
    config = RAGConfig()
    gen_config = GenerationConfig()

    if not api_key:
        logger.warning("OPENAI_API_KEY not set: vector search, query expansion and chat disabled")
        return Services(
            storage=storage,
            retriever=HybridRetriever(storage=storage, config=config),
            ingestor=DocumentIngestor(storage, config=config),
        )

    llm = create_client(api_key=api_key)
    embeddings = OpenAIEmbeddings(client=llm.client, model=config.embedding_model)
    expander = QueryExpander(
        llm,
        max_variations=config.max_variations,
        max_tokens=gen_config.expansion_max_tokens,
    )
    retriever = HybridRetriever(
        storage=storage,
        embeddings=embeddings,
        expander=expander,
        config=config,
    )
    agent = RAGAgent(
        storage=storage,
        retriever=retriever,
        generator=AnswerGenerator(llm, gen_config),
        top_k=config.top_k,
        history_messages=gen_config.history_messages,
    )
    return Services(
        storage=storage,
        retriever=retriever,
        ingestor=DocumentIngestor(storage, embeddings=embeddings, config=config),
        agent=agent,
    )
