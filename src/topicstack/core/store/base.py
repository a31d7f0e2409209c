"""Conversation store interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from topicstack.core.serialization import SerializableStack


@runtime_checkable
class ConversationStore(Protocol):
    """Keeps one serialized stack per conversation id.

    Implementations must round-trip every field of ``SerializableStack``
    exactly; eviction and lifetime are the store's own concern.
    """

    def get(self, conversation_id: str) -> SerializableStack | None: ...

    def save(self, conversation_id: str, state: SerializableStack) -> None: ...

    def clear(self, conversation_id: str) -> bool: ...
