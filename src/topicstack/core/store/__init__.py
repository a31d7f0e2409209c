"""Conversation stores — where serialized stacks live between turns."""

from topicstack.core.store.base import ConversationStore
from topicstack.core.store.memory import MemoryStore
from topicstack.core.store.sqlite import SQLiteStore

__all__ = [
    "ConversationStore",
    "MemoryStore",
    "SQLiteStore",
]
