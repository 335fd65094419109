"""
Orchestrator: document ingestion and the retrieval-then-generation chat flow.
"""

from .agent import ChatTurn, RAGAgent
from .ingestion import DocumentIngestor

__all__ = [
    "ChatTurn",
    "DocumentIngestor",
    "RAGAgent",
]
