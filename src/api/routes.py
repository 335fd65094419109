"""
API routes: documents, conversations, messages, chat, search, health.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from src.db.repository import Message
from src.rag.index import Chunk, Document, SourceCitation
from src.rag.retriever import RetrievedChunk

from .deps import Services
from .models import (
    ChatRequest,
    ChatResponse,
    ChunkMetadataOut,
    ChunkOut,
    ConversationCreate,
    ConversationOut,
    DocumentOut,
    DocumentUpload,
    HealthResponse,
    MessageOut,
    SearchHit,
    SearchRequest,
    SearchResponse,
    SourceOut,
    StageOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


def _services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Service unavailable: not initialized.")
    return services


def _document_out(doc: Document) -> DocumentOut:
    return DocumentOut(**dataclasses.asdict(doc))


def _chunk_out(chunk: Chunk) -> ChunkOut:
    return ChunkOut(
        id=chunk.id,
        document_id=chunk.document_id,
        chunk_index=chunk.chunk_index,
        content=chunk.content,
        has_embedding=chunk.has_embedding,
        metadata=ChunkMetadataOut(**chunk.metadata.to_dict()),
    )


def _source_out(source: SourceCitation) -> SourceOut:
    return SourceOut(**source.to_dict())


def _message_out(msg: Message) -> MessageOut:
    return MessageOut(
        id=msg.id,
        conversation_id=msg.conversation_id,
        role=msg.role,
        content=msg.content,
        sources=[_source_out(s) for s in msg.sources] if msg.sources is not None else None,
        created_at=msg.created_at,
    )


def _hit(result: RetrievedChunk) -> SearchHit:
    return SearchHit(
        id=result.id,
        document_id=result.document_id,
        content=result.content,
        metadata=ChunkMetadataOut(**result.metadata.to_dict()),
        vector_score=result.vector_score,
        bm25_score=result.bm25_score,
        combined_score=result.combined_score,
    )


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": message})


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Health check with corpus counts."""
    services = _services(request)
    chunks = services.storage.list_chunks()
    return HealthResponse(
        status="ok",
        documents=len(services.storage.list_documents()),
        chunks=len(chunks),
        embedded_chunks=sum(1 for c in chunks if c.has_embedding),
        chat_available=services.agent is not None,
    )


# Documents


@router.get("/documents", response_model=List[DocumentOut])
async def list_documents(request: Request) -> List[DocumentOut]:
    services = _services(request)
    return [_document_out(d) for d in services.storage.list_documents()]


@router.post("/documents", response_model=DocumentOut)
async def upload_document(request: Request, body: DocumentUpload) -> DocumentOut | JSONResponse:
    """Store, chunk and embed a new document."""
    services = _services(request)
    try:
        document = await asyncio.to_thread(
            services.ingestor.ingest,
            body.title,
            body.content,
            body.type,
            body.source,
            str(body.url) if body.url else None,
        )
    except Exception:
        logger.exception("Error uploading document")
        return _error("Failed to upload document")
    return _document_out(document)


@router.get("/documents/{document_id}/chunks", response_model=List[ChunkOut])
async def document_chunks(request: Request, document_id: str) -> List[ChunkOut]:
    services = _services(request)
    if services.storage.get_document(document_id) is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return [_chunk_out(c) for c in services.storage.get_chunks_for_document(document_id)]


@router.delete("/documents/{document_id}")
async def delete_document(request: Request, document_id: str) -> dict:
    """Delete a document and its chunks."""
    services = _services(request)
    if services.storage.get_document(document_id) is None:
        raise HTTPException(status_code=404, detail="Document not found")
    services.storage.delete_document(document_id)
    return {"success": True}


# Conversations


@router.get("/conversations", response_model=List[ConversationOut])
async def list_conversations(request: Request) -> List[ConversationOut]:
    services = _services(request)
    return [ConversationOut(**dataclasses.asdict(c)) for c in services.storage.list_conversations()]


@router.post("/conversations", response_model=ConversationOut)
async def create_conversation(request: Request, body: ConversationCreate) -> ConversationOut:
    services = _services(request)
    conversation = services.storage.create_conversation(body.title)
    return ConversationOut(**dataclasses.asdict(conversation))


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(request: Request, conversation_id: str) -> dict:
    services = _services(request)
    if services.storage.get_conversation(conversation_id) is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    services.storage.delete_conversation(conversation_id)
    return {"success": True}


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageOut])
async def list_messages(request: Request, conversation_id: str) -> List[MessageOut]:
    services = _services(request)
    if services.storage.get_conversation(conversation_id) is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return [_message_out(m) for m in services.storage.list_messages(conversation_id)]


# Chat and search


@router.post("/chat", response_model=ChatResponse)
async def chat(request: Request, body: ChatRequest) -> ChatResponse | JSONResponse:
    """Answer a message using hybrid retrieval and the LLM, storing both turns."""
    services = _services(request)
    if not body.conversation_id:
        raise HTTPException(status_code=400, detail="Conversation ID required")
    if services.agent is None:
        return JSONResponse(
            status_code=503,
            content={"detail": "Service unavailable: chat requires a configured LLM provider."},
        )
    try:
        turn = await asyncio.to_thread(services.agent.chat, body.conversation_id, body.message)
    except LookupError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except Exception:
        logger.exception("Error in chat")
        return _error("Failed to process chat message")
    return ChatResponse(
        message=_message_out(turn.message),
        sources=[_source_out(s) for s in turn.sources],
    )


@router.post("/search", response_model=SearchResponse)
async def search(request: Request, body: SearchRequest) -> SearchResponse | JSONResponse:
    """Hybrid retrieval without answer generation."""
    services = _services(request)
    try:
        report = await asyncio.to_thread(
            services.retriever.retrieve_with_report, body.query, body.top_k
        )
    except Exception:
        logger.exception("Error in search")
        return _error("Failed to search documents")
    return SearchResponse(
        query=body.query,
        results=[_hit(r) for r in report.results],
        expansion=StageOut(status=report.expansion.status.value, detail=report.expansion.detail),
        vector=StageOut(status=report.vector.status.value, detail=report.vector.detail),
    )
