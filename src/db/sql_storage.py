"""
SQLAlchemy-backed implementation of the Storage contract.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager, nullcontext
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from src.rag.index import (
    Chunk,
    ChunkMetadata,
    Document,
    NewChunk,
    SourceCitation,
    validate_document_type,
)

from .models import ChunkRow, ConversationRow, DocumentRow, MessageRow
from .repository import DEFAULT_CONVERSATION_TITLE, Conversation, Message, new_id
from .session import init_db, make_session_factory


def _to_document(row: DocumentRow) -> Document:
    return Document(
        id=row.id,
        title=row.title,
        content=row.content,
        type=row.type,
        source=row.source,
        url=row.url,
        created_at=row.created_at,
    )


def _to_chunk(row: ChunkRow) -> Chunk:
    return Chunk(
        id=row.id,
        document_id=row.document_id,
        content=row.content,
        chunk_index=row.chunk_index,
        metadata=ChunkMetadata.from_dict(row.metadata_json or {}),
        embedding=list(row.embedding) if row.embedding else None,
    )


def _to_conversation(row: ConversationRow) -> Conversation:
    return Conversation(id=row.id, title=row.title, created_at=row.created_at)


def _to_message(row: MessageRow) -> Message:
    sources = None
    if row.sources is not None:
        sources = [SourceCitation.from_dict(s) for s in row.sources]
    return Message(
        id=row.id,
        conversation_id=row.conversation_id,
        role=row.role,
        content=row.content,
        sources=sources,
        created_at=row.created_at,
    )


class SQLStorage:
    """
    Relational storage; one short-lived session per operation.

    SQLite allows a single writer and an in-memory database shares one
    connection across threads, so sqlite engines serialise every session.
    """

    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        self._session_factory = make_session_factory(engine)
        self._lock = threading.RLock() if engine.dialect.name == "sqlite" else nullcontext()
        if create_tables:
            init_db(engine)

    @contextmanager
    def _read(self) -> Iterator[Session]:
        with self._lock, self._session_factory() as session:
            yield session

    @contextmanager
    def _write(self) -> Iterator[Session]:
        with self._lock, self._session_factory.begin() as session:
            yield session

    # Documents

    def list_documents(self) -> List[Document]:
        with self._read() as session:
            rows = session.scalars(
                select(DocumentRow).order_by(DocumentRow.created_at.desc())
            ).all()
            return [_to_document(r) for r in rows]

    def get_document(self, document_id: str) -> Optional[Document]:
        with self._read() as session:
            row = session.get(DocumentRow, document_id)
            return _to_document(row) if row is not None else None

    def create_document(
        self,
        title: str,
        content: str,
        type: str,
        source: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Document:
        row = DocumentRow(
            id=new_id(),
            title=title,
            content=content,
            type=validate_document_type(type),
            source=source,
            url=url,
        )
        with self._write() as session:
            session.add(row)
            session.flush()
            return _to_document(row)

    def delete_document(self, document_id: str) -> None:
        with self._write() as session:
            row = session.get(DocumentRow, document_id)
            if row is not None:
                session.delete(row)

    # Chunks

    def list_chunks(self) -> List[Chunk]:
        with self._read() as session:
            rows = session.scalars(
                select(ChunkRow).order_by(ChunkRow.document_id, ChunkRow.chunk_index)
            ).all()
            return [_to_chunk(r) for r in rows]

    def get_chunks_for_document(self, document_id: str) -> List[Chunk]:
        with self._read() as session:
            rows = session.scalars(
                select(ChunkRow)
                .where(ChunkRow.document_id == document_id)
                .order_by(ChunkRow.chunk_index)
            ).all()
            return [_to_chunk(r) for r in rows]

    def create_chunk(self, chunk: NewChunk) -> Chunk:
        row = ChunkRow(
            id=new_id(),
            document_id=chunk.document_id,
            content=chunk.content,
            chunk_index=chunk.chunk_index,
            embedding=list(chunk.embedding) if chunk.embedding else None,
            metadata_json=chunk.metadata.to_dict(),
        )
        with self._write() as session:
            session.add(row)
            session.flush()
            return _to_chunk(row)

    def set_chunk_embedding(self, chunk_id: str, embedding: Sequence[float]) -> None:
        with self._write() as session:
            row = session.get(ChunkRow, chunk_id)
            if row is not None:
                row.embedding = [float(x) for x in embedding]

    # Conversations

    def list_conversations(self) -> List[Conversation]:
        with self._read() as session:
            rows = session.scalars(
                select(ConversationRow).order_by(ConversationRow.created_at.desc())
            ).all()
            return [_to_conversation(r) for r in rows]

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        with self._read() as session:
            row = session.get(ConversationRow, conversation_id)
            return _to_conversation(row) if row is not None else None

    def create_conversation(self, title: str = DEFAULT_CONVERSATION_TITLE) -> Conversation:
        row = ConversationRow(id=new_id(), title=title)
        with self._write() as session:
            session.add(row)
            session.flush()
            return _to_conversation(row)

    def update_conversation_title(self, conversation_id: str, title: str) -> None:
        with self._write() as session:
            row = session.get(ConversationRow, conversation_id)
            if row is not None:
                row.title = title

    def delete_conversation(self, conversation_id: str) -> None:
        with self._write() as session:
            row = session.get(ConversationRow, conversation_id)
            if row is not None:
                session.delete(row)

    # Messages

    def list_messages(self, conversation_id: str) -> List[Message]:
        with self._read() as session:
            rows = session.scalars(
                select(MessageRow)
                .where(MessageRow.conversation_id == conversation_id)
                .order_by(MessageRow.seq)
            ).all()
            return [_to_message(r) for r in rows]

    def create_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        sources: Optional[List[SourceCitation]] = None,
    ) -> Message:
        row = MessageRow(
            id=new_id(),
            conversation_id=conversation_id,
            role=role,
            content=content,
            sources=[s.to_dict() for s in sources] if sources is not None else None,
        )
        with self._write() as session:
            session.add(row)
            session.flush()
            return _to_message(row)
