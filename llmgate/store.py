"""
Chat persistence contract and an in-memory reference store.

The gateway does not use this module. Applications save what the gateway
returns through a ChatStore; the in-memory store backs the demo and tests.
"""
import itertools
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Literal, Protocol

from .types import ChatMessage

logger = logging.getLogger(__name__)

StoredRole = Literal["user", "assistant"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MessageRecord:
    id: str
    chat_id: str
    content: str
    role: StoredRole
    created_at: datetime

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


@dataclass(frozen=True)
class ChatRecord:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    messages: List[MessageRecord] = field(default_factory=list)


class ChatStore(Protocol):
    """
    Persistence operations an application needs around the gateway.
    """

    def create_chat(self, name: str) -> ChatRecord: ...

    def list_chats(self) -> List[ChatRecord]: ...

    def get_chat(self, chat_id: str) -> ChatRecord: ...

    def delete_chat(self, chat_id: str) -> None: ...

    def create_message(self, chat_id: str, content: str, role: StoredRole) -> MessageRecord: ...

    def list_messages(self, chat_id: str) -> List[MessageRecord]: ...


class InMemoryChatStore:
    """
    Dict-backed ChatStore.

    Handles CRUD operations for:
    - Chats (listed most recently updated first)
    - Messages (listed in creation order)
    """

    def __init__(self):
        self._chats: Dict[str, ChatRecord] = {}
        self._messages: Dict[str, List[MessageRecord]] = {}
        # update order; wall-clock timestamps can tie or step backwards
        self._touched: Dict[str, int] = {}
        self._clock = itertools.count()

    def create_chat(self, name: str) -> ChatRecord:
        now = _utcnow()
        chat = ChatRecord(id=str(uuid.uuid4()), name=name, created_at=now, updated_at=now)
        self._chats[chat.id] = chat
        self._messages[chat.id] = []
        self._touched[chat.id] = next(self._clock)
        logger.debug("Created chat %s", chat.id)
        return chat

    def list_chats(self) -> List[ChatRecord]:
        return sorted(self._chats.values(), key=lambda c: self._touched[c.id], reverse=True)

    def get_chat(self, chat_id: str) -> ChatRecord:
        """
        Get a chat together with its messages, oldest first.

        Raises:
            KeyError: If no chat has this id.
        """
        chat = self._require(chat_id)
        return replace(chat, messages=list(self._messages[chat_id]))

    def delete_chat(self, chat_id: str) -> None:
        self._require(chat_id)
        del self._chats[chat_id]
        del self._messages[chat_id]
        del self._touched[chat_id]
        logger.debug("Deleted chat %s", chat_id)

    def create_message(self, chat_id: str, content: str, role: StoredRole) -> MessageRecord:
        """
        Append a message to a chat and bump the chat's `updated_at`.

        Raises:
            KeyError: If no chat has this id.
            ValueError: If the role is not 'user' or 'assistant'.
        """
        chat = self._require(chat_id)
        if role not in ("user", "assistant"):
            raise ValueError(f"Cannot store a message with role '{role}'")

        now = _utcnow()
        message = MessageRecord(
            id=str(uuid.uuid4()),
            chat_id=chat_id,
            content=content,
            role=role,
            created_at=now,
        )
        self._messages[chat_id].append(message)
        self._chats[chat_id] = replace(chat, updated_at=max(now, chat.updated_at))
        self._touched[chat_id] = next(self._clock)
        return message

    def list_messages(self, chat_id: str) -> List[MessageRecord]:
        self._require(chat_id)
        return list(self._messages[chat_id])

    def _require(self, chat_id: str) -> ChatRecord:
        try:
            return self._chats[chat_id]
        except KeyError:
            raise KeyError(f"Chat '{chat_id}' not found") from None
