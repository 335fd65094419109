"""
Document ingestion: store, chunk, and embed documents.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from src.db.repository import Storage
from src.rag.chunker import chunk_document
from src.rag.config import RAGConfig
from src.rag.embeddings import EmbeddingProvider
from src.rag.index import Chunk, Document, load_documents

logger = logging.getLogger(__name__)


class DocumentIngestor:
    """Chunks documents into storage and attaches embeddings when a provider is available."""

    def __init__(
        self,
        storage: Storage,
        embeddings: Optional[EmbeddingProvider] = None,
        config: Optional[RAGConfig] = None,
    ):
        self.storage = storage
        self.embeddings = embeddings
        self.config = config or RAGConfig()

    def ingest(
        self,
        title: str,
        content: str,
        type: str,
        source: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Document:
        document = self.storage.create_document(
            title=title,
            content=content,
            type=type,
            source=source or None,
            url=url or None,
        )
        self.process_document(document)
        return document

    def process_document(self, document: Document) -> List[Chunk]:
        """Chunk a stored document, persist the chunks, then embed them."""
        created = [
            self.storage.create_chunk(new_chunk)
            for new_chunk in chunk_document(
                document,
                chunk_size=self.config.chunk_size,
                overlap=self.config.chunk_overlap,
            )
        ]
        self._embed_chunks(created)
        return created

    def initialize_embeddings(self) -> int:
        """Embed every stored chunk that has no embedding yet. Returns how many were written."""
        missing = [c for c in self.storage.list_chunks() if not c.has_embedding]
        logger.info("Initializing embeddings for %s chunks...", len(missing))
        written = self._embed_chunks(missing)
        logger.info("Embeddings initialization complete (%s/%s).", written, len(missing))
        return written

    def seed_sample_documents(self, path: Path | None = None) -> List[Document]:
        """Ingest the sample documents when storage is empty; otherwise return what is stored."""
        existing = self.storage.list_documents()
        if existing:
            return existing
        seeded: List[Document] = []
        for payload in load_documents(path):
            logger.info("Creating chunks for: %s", payload["title"])
            seeded.append(self.ingest(**payload))
        return seeded

    def _embed_one(self, chunk: Chunk) -> bool:
        try:
            embedding = self.embeddings.embed(chunk.content)
        except Exception as e:
            logger.error("Failed to generate embedding for chunk %s: %s", chunk.id, e)
            return False
        try:
            self.storage.set_chunk_embedding(chunk.id, embedding)
        except Exception as e:
            logger.error("Failed to store embedding for chunk %s: %s", chunk.id, e)
            return False
        return True

    def _embed_chunks(self, chunks: List[Chunk]) -> int:
        if self.embeddings is None or not chunks:
            return 0
        workers = max(1, min(self.config.embedding_workers, len(chunks)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return sum(pool.map(self._embed_one, chunks))
