"""In-process conversation store.

States are kept as JSON text, so a caller can never mutate a stored
state through a shared reference, and data that would not survive a
real store fails here too.
"""

from __future__ import annotations

from topicstack.core.exceptions import StoreError
from topicstack.core.serialization import SerializableStack


class MemoryStore:
    def __init__(self) -> None:
        self._states: dict[str, str] = {}

    def get(self, conversation_id: str) -> SerializableStack | None:
        text = self._states.get(conversation_id)
        if text is None:
            return None
        return SerializableStack.from_json(text)

    def save(self, conversation_id: str, state: SerializableStack) -> None:
        try:
            self._states[conversation_id] = state.to_json()
        except (TypeError, ValueError) as exc:
            raise StoreError(
                f"State for conversation {conversation_id!r} is not JSON-serializable: {exc}"
            ) from exc

    def clear(self, conversation_id: str) -> bool:
        return self._states.pop(conversation_id, None) is not None

    def list_conversations(self) -> list[str]:
        return sorted(self._states)

    def __len__(self) -> int:
        return len(self._states)
