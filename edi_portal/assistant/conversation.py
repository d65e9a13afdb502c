"""Conversation storage for the tool-calling assistant.

Conversations live in process memory only: created lazily on the first
message, removed on an explicit clear, lost on restart. Each conversation has
its own lock so that two turns on the same id run one after another.
"""

import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant", "tool"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ChatMessage(BaseModel):
    """One role-tagged message in a conversation.

    Serializes to the OpenAI chat message format; unset optional fields are
    dropped.
    """

    model_config = ConfigDict(extra="forbid")

    role: Role
    content: str = ""
    name: str | None = None
    tool_calls: list[dict[str, Any]] | None = None
    tool_call_id: str | None = None

    def to_openai(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Conversation(BaseModel):
    """Ordered message history for one conversation id."""

    conversation_id: str
    messages: list[ChatMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    last_updated_at: datetime = Field(default_factory=_utcnow)

    def openai_messages(self) -> list[dict[str, Any]]:
        return [message.to_openai() for message in self.messages]

    def touch(self) -> None:
        self.last_updated_at = _utcnow()


class ConversationStore(ABC):
    """Keyed store of conversations.

    Implementations must keep conversations isolated from each other and hand
    out one lock per conversation id.
    """

    @abstractmethod
    def get(self, conversation_id: str) -> Conversation | None:
        """Return the conversation, or None if it does not exist."""
        pass

    @abstractmethod
    def create(self, conversation_id: str, system_prompt: str) -> Conversation:
        """Create (or replace) a conversation seeded with a system message."""
        pass

    @abstractmethod
    def delete(self, conversation_id: str) -> bool:
        """Remove a conversation. Returns True if it existed."""
        pass

    @abstractmethod
    def lock(self, conversation_id: str) -> threading.Lock:
        """Return the lock that serializes turns on conversation_id."""
        pass

    def get_or_create(self, conversation_id: str, system_prompt: str) -> Conversation:
        conversation = self.get(conversation_id)
        if conversation is None:
            conversation = self.create(conversation_id, system_prompt)
        return conversation

    def append(self, conversation_id: str, message: ChatMessage) -> None:
        """Append a message to an existing conversation.

        Raises:
            KeyError: If the conversation does not exist
        """
        conversation = self.get(conversation_id)
        if conversation is None:
            raise KeyError(conversation_id)
        conversation.messages.append(message)
        conversation.touch()


class InMemoryConversationStore(ConversationStore):
    """Conversation store backed by a dict in process memory."""

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    def create(self, conversation_id: str, system_prompt: str) -> Conversation:
        now = _utcnow()
        conversation = Conversation(
            conversation_id=conversation_id,
            messages=[ChatMessage(role="system", content=system_prompt)],
            created_at=now,
            last_updated_at=now,
        )
        with self._guard:
            self._conversations[conversation_id] = conversation
        return conversation

    def delete(self, conversation_id: str) -> bool:
        # The lock stays: a turn may still be waiting on it
        with self._guard:
            return self._conversations.pop(conversation_id, None) is not None

    def lock(self, conversation_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(conversation_id, threading.Lock())

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations
