"""
RAG chat agent: persist the turn, retrieve, generate a cited answer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from src.db.repository import DEFAULT_CONVERSATION_TITLE, Message, Storage
from src.generation import AnswerGenerator
from src.rag.index import SourceCitation
from src.rag.retriever import Retriever

TITLE_LENGTH = 50


@dataclass
class ChatTurn:
    """Assistant reply stored for one user message."""

    message: Message
    sources: List[SourceCitation]


class RAGAgent:
    """Answers a user message within a stored conversation."""

    def __init__(
        self,
        storage: Storage,
        retriever: Retriever,
        generator: AnswerGenerator,
        top_k: int = 5,
        history_messages: int = 10,
    ):
        self.storage = storage
        self.retriever = retriever
        self.generator = generator
        self.top_k = top_k
        self.history_messages = history_messages

    def chat(self, conversation_id: str, message: str) -> ChatTurn:
        """Raises LookupError when the conversation does not exist."""
        conversation = self.storage.get_conversation(conversation_id)
        if conversation is None:
            raise LookupError(f"conversation {conversation_id} not found")

        self.storage.create_message(conversation_id, "user", message)
        if conversation.title == DEFAULT_CONVERSATION_TITLE:
            self.storage.update_conversation_title(conversation_id, message[:TITLE_LENGTH])

        # Last N messages, minus the one just stored.
        recent = self.storage.list_messages(conversation_id)[-self.history_messages :]
        history = [{"role": m.role, "content": m.content} for m in recent[:-1]]

        chunks = self.retriever.retrieve(message, self.top_k)
        answer = self.generator.generate(message, history, chunks)

        reply = self.storage.create_message(
            conversation_id,
            "assistant",
            answer.response,
            sources=answer.sources,
        )
        return ChatTurn(message=reply, sources=answer.sources)
