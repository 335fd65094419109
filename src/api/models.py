"""
Request and response models for the RAG API.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, HttpUrl

DocumentTypeLiteral = Literal["article", "analysis", "rules", "performance", "news"]


class DocumentUpload(BaseModel):
    """Request body for POST /api/documents."""

    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    type: DocumentTypeLiteral
    source: Optional[str] = None
    url: Optional[HttpUrl] = None


class DocumentOut(BaseModel):
    id: str
    title: str
    content: str
    type: str
    source: Optional[str] = None
    url: Optional[str] = None
    created_at: dt.datetime


class ChunkMetadataOut(BaseModel):
    document_title: str
    document_type: str
    source: Optional[str] = None
    start_position: int
    end_position: int
    keywords: List[str] = Field(default_factory=list)


class ChunkOut(BaseModel):
    id: str
    document_id: str
    chunk_index: int
    content: str
    has_embedding: bool
    metadata: ChunkMetadataOut


class ConversationCreate(BaseModel):
    """Request body for POST /api/conversations."""

    title: str = Field("New Conversation", min_length=1)


class ConversationOut(BaseModel):
    id: str
    title: str
    created_at: dt.datetime


class SourceOut(BaseModel):
    """Citation in API response."""

    document_id: str
    chunk_id: str
    title: str
    excerpt: str
    relevance_score: float
    type: str


class MessageOut(BaseModel):
    id: str
    conversation_id: str
    role: str
    content: str
    sources: Optional[List[SourceOut]] = None
    created_at: dt.datetime


class ChatRequest(BaseModel):
    """Request body for POST /api/chat."""

    message: str = Field(..., min_length=1, description="User question")
    conversation_id: Optional[str] = Field(None, description="Conversation the message belongs to")


class ChatResponse(BaseModel):
    """Response for POST /api/chat."""

    message: MessageOut
    sources: List[SourceOut] = Field(default_factory=list)


class SearchRequest(BaseModel):
    """Request body for POST /api/search."""

    query: str = Field(..., min_length=1)
    top_k: int = Field(5, ge=1, le=20)


class SearchHit(BaseModel):
    """Single search result."""

    id: str
    document_id: str
    content: str
    metadata: ChunkMetadataOut
    vector_score: float
    bm25_score: float
    combined_score: float


class StageOut(BaseModel):
    status: str
    detail: str = ""


class SearchResponse(BaseModel):
    """Response for POST /api/search."""

    query: str
    results: List[SearchHit] = Field(default_factory=list)
    expansion: StageOut
    vector: StageOut


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    status: str = "ok"
    documents: int = 0
    chunks: int = 0
    embedded_chunks: int = 0
    chat_available: bool = False
