"""
Storage contract for documents, chunks and conversations, plus an in-memory backend.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import threading
import uuid
from typing import Dict, List, Optional, Protocol, Sequence

from src.rag.index import Chunk, Document, NewChunk, SourceCitation, utcnow, validate_document_type

DEFAULT_CONVERSATION_TITLE = "New Conversation"


@dataclasses.dataclass
class Conversation:
    id: str
    title: str
    created_at: dt.datetime = dataclasses.field(default_factory=utcnow)


@dataclasses.dataclass
class Message:
    id: str
    conversation_id: str
    role: str
    content: str
    sources: Optional[List[SourceCitation]] = None
    created_at: dt.datetime = dataclasses.field(default_factory=utcnow)


def new_id() -> str:
    return str(uuid.uuid4())


class Storage(Protocol):
    """Persistence used by ingestion, retrieval and chat."""

    def list_documents(self) -> List[Document]:
        """All documents, newest first."""
        ...

    def get_document(self, document_id: str) -> Optional[Document]:
        ...

    def create_document(
        self,
        title: str,
        content: str,
        type: str,
        source: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Document:
        """Store a document with a generated id and creation timestamp."""
        ...

    def delete_document(self, document_id: str) -> None:
        """Delete a document and all of its chunks."""
        ...

    def list_chunks(self) -> List[Chunk]:
        ...

    def get_chunks_for_document(self, document_id: str) -> List[Chunk]:
        """Chunks of one document ordered by chunk_index."""
        ...

    def create_chunk(self, chunk: NewChunk) -> Chunk:
        ...

    def set_chunk_embedding(self, chunk_id: str, embedding: Sequence[float]) -> None:
        """Attach an embedding; last writer wins, unknown ids are ignored."""
        ...

    def list_conversations(self) -> List[Conversation]:
        ...

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        ...

    def create_conversation(self, title: str = DEFAULT_CONVERSATION_TITLE) -> Conversation:
        ...

    def update_conversation_title(self, conversation_id: str, title: str) -> None:
        ...

    def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation and all of its messages."""
        ...

    def list_messages(self, conversation_id: str) -> List[Message]:
        """Messages of one conversation, oldest first."""
        ...

    def create_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        sources: Optional[List[SourceCitation]] = None,
    ) -> Message:
        ...


class InMemoryStorage:
    """
    Dict-backed storage with an id index per entity and a document_id -> chunk ids
    secondary index maintained on every insert and delete.

    A lock serialises mutations so concurrent ingestion and retrieval see
    consistent per-key state.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._documents: Dict[str, Document] = {}
        self._chunks: Dict[str, Chunk] = {}
        self._chunks_by_document: Dict[str, List[str]] = {}
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, Message] = {}
        self._messages_by_conversation: Dict[str, List[str]] = {}

    # Documents

    def list_documents(self) -> List[Document]:
        with self._lock:
            docs = list(self._documents.values())
        return sorted(docs, key=lambda d: d.created_at, reverse=True)

    def get_document(self, document_id: str) -> Optional[Document]:
        return self._documents.get(document_id)

    def create_document(
        self,
        title: str,
        content: str,
        type: str,
        source: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Document:
        document = Document(
            id=new_id(),
            title=title,
            content=content,
            type=validate_document_type(type),
            source=source,
            url=url,
        )
        with self._lock:
            self._documents[document.id] = document
            self._chunks_by_document.setdefault(document.id, [])
        return document

    def delete_document(self, document_id: str) -> None:
        with self._lock:
            self._documents.pop(document_id, None)
            for chunk_id in self._chunks_by_document.pop(document_id, []):
                self._chunks.pop(chunk_id, None)

    # Chunks

    def list_chunks(self) -> List[Chunk]:
        with self._lock:
            return list(self._chunks.values())

    def get_chunks_for_document(self, document_id: str) -> List[Chunk]:
        with self._lock:
            ids = list(self._chunks_by_document.get(document_id, []))
            chunks = [self._chunks[cid] for cid in ids if cid in self._chunks]
        return sorted(chunks, key=lambda c: c.chunk_index)

    def create_chunk(self, chunk: NewChunk) -> Chunk:
        created = Chunk(
            id=new_id(),
            document_id=chunk.document_id,
            content=chunk.content,
            chunk_index=chunk.chunk_index,
            metadata=chunk.metadata,
            embedding=list(chunk.embedding) if chunk.embedding else None,
        )
        with self._lock:
            self._chunks[created.id] = created
            self._chunks_by_document.setdefault(created.document_id, []).append(created.id)
        return created

    def set_chunk_embedding(self, chunk_id: str, embedding: Sequence[float]) -> None:
        with self._lock:
            chunk = self._chunks.get(chunk_id)
            if chunk is not None:
                chunk.embedding = list(embedding)

    # Conversations

    def list_conversations(self) -> List[Conversation]:
        with self._lock:
            convs = list(self._conversations.values())
        return sorted(convs, key=lambda c: c.created_at, reverse=True)

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def create_conversation(self, title: str = DEFAULT_CONVERSATION_TITLE) -> Conversation:
        conversation = Conversation(id=new_id(), title=title)
        with self._lock:
            self._conversations[conversation.id] = conversation
            self._messages_by_conversation.setdefault(conversation.id, [])
        return conversation

    def update_conversation_title(self, conversation_id: str, title: str) -> None:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is not None:
                conversation.title = title

    def delete_conversation(self, conversation_id: str) -> None:
        with self._lock:
            self._conversations.pop(conversation_id, None)
            for message_id in self._messages_by_conversation.pop(conversation_id, []):
                self._messages.pop(message_id, None)

    # Messages

    def list_messages(self, conversation_id: str) -> List[Message]:
        with self._lock:
            ids = list(self._messages_by_conversation.get(conversation_id, []))
            return [self._messages[mid] for mid in ids if mid in self._messages]

    def create_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        sources: Optional[List[SourceCitation]] = None,
    ) -> Message:
        message = Message(
            id=new_id(),
            conversation_id=conversation_id,
            role=role,
            content=content,
            sources=sources,
        )
        with self._lock:
            self._messages[message.id] = message
            self._messages_by_conversation.setdefault(conversation_id, []).append(message.id)
        return message
