"""
Sentence-based chunker for F1 documents.

Sentences are accumulated greedily into ~chunk_size character windows. When a
window closes, the next one is seeded with the tail of the closed window so
consecutive chunks overlap. The size is a soft target: a single sentence longer
than chunk_size is kept whole.
"""

from __future__ import annotations

from typing import List, Tuple

from .index import ChunkMetadata, Document, NewChunk
from .utils import sentence_spans

CHUNK_SIZE = 500
CHUNK_OVERLAP = 100
MAX_KEYWORDS = 10

# Domain jargon, checked before entities.
F1_TERMS = (
    "pit stop", "tire", "strategy", "drs", "overtake", "qualifying",
    "pole position", "fastest lap", "safety car", "vsc", "red flag",
    "undercut", "overcut", "medium", "soft", "hard", "intermediate",
    "wet", "slick", "degradation", "graining", "blistering",
    "downforce", "drag", "aero", "ers", "battery", "deployment",
    "sector", "lap time", "gap", "delta", "pace", "stint",
)

# Drivers, teams and circuits.
F1_ENTITIES = (
    "verstappen", "hamilton", "leclerc", "norris", "sainz", "russell",
    "perez", "alonso", "stroll", "gasly", "ocon", "tsunoda",
    "red bull", "ferrari", "mercedes", "mclaren", "aston martin",
    "alpine", "williams", "haas", "alfa romeo", "alphatauri",
    "monaco", "silverstone", "monza", "spa", "suzuka", "interlagos",
)


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """
    Case-insensitive substring match of text against the F1 vocabularies.

    Jargon matches come first, then entities, each in vocabulary order.
    """
    lowered = text.lower()
    keywords: List[str] = []
    for term in F1_TERMS + F1_ENTITIES:
        if term in lowered and term not in keywords:
            keywords.append(term)
    return keywords[:limit]


# (buffer offset, document start, document end) of each piece of the buffer.
Piece = Tuple[int, int, int]


def _make_chunk(
    document: Document,
    buffer: str,
    pieces: List[Piece],
    chunk_index: int,
) -> NewChunk:
    buf_offset, doc_start, _ = pieces[0]
    metadata = ChunkMetadata(
        document_title=document.title,
        document_type=document.type,
        source=document.source or None,
        start_position=doc_start - buf_offset,
        end_position=pieces[-1][2],
        keywords=extract_keywords(buffer),
    )
    return NewChunk(
        document_id=document.id,
        content=buffer.strip(),
        chunk_index=chunk_index,
        metadata=metadata,
    )


def _tail_pieces(pieces: List[Piece], cut: int) -> List[Piece]:
    """Pieces covering buffer[cut:], rebased so the buffer starts at 0."""
    tail: List[Piece] = []
    for buf_offset, doc_start, doc_end in pieces:
        if buf_offset + (doc_end - doc_start) <= cut:
            continue
        skipped = max(0, cut - buf_offset)
        tail.append((max(0, buf_offset - cut), doc_start + skipped, doc_end))
    return tail


def chunk_document(
    document: Document,
    chunk_size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> List[NewChunk]:
    """
    Split a document into ordered, overlapping chunks (no ids, no embeddings).

    Sentences are joined with a single space and an overlap tail is glued
    directly to the sentence that follows it. Positions are offsets into the
    document content, so the last chunk ends at the end of the content.
    """
    content = document.content
    chunks: List[NewChunk] = []
    buffer = ""
    pieces: List[Piece] = []
    chunk_index = 0

    for doc_start, doc_end in sentence_spans(content):
        sentence = content[doc_start:doc_end]
        if buffer and len(buffer) + len(sentence) > chunk_size:
            chunks.append(_make_chunk(document, buffer, pieces, chunk_index))
            overlap_start = max(0, len(buffer) - overlap)
            if overlap_start == 0:
                # Buffer no longer than the overlap: carrying it would repeat the start offset.
                buffer = sentence
                pieces = [(0, doc_start, doc_end)]
            else:
                pieces = _tail_pieces(pieces, overlap_start)
                buffer = buffer[overlap_start:]
                pieces.append((len(buffer), doc_start, doc_end))
                buffer += sentence
            chunk_index += 1
        elif buffer:
            pieces.append((len(buffer) + 1, doc_start, doc_end))
            buffer = f"{buffer} {sentence}"
        else:
            buffer = sentence
            pieces = [(0, doc_start, doc_end)]

    if buffer.strip():
        chunks.append(_make_chunk(document, buffer, pieces, chunk_index))

    return chunks
