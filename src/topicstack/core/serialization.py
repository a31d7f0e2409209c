"""
Serialization / rehydration of a conversation stack.

``SerializableStack`` is the only form that crosses the process or store
boundary.  Topic and callback identity degrade to names and are resolved
again through the ``TopicRegistry`` on every load; nothing is assumed to
survive in memory between turns.

Wire shape (``to_dict``)::

    {
      "virgin": false,
      "items": [
        {
          "topic_name": "validate",
          "parent_topic_name": "signup",
          "callback_name": "on_validate_name",
          "data": {...},
          "active_condition_names": [],
          "disabled_condition_names": []
        }
      ]
    }
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from topicstack.core.exceptions import SerializationError, UnknownCallbackError
from topicstack.core.registry import TopicRegistry
from topicstack.core.stack import Stack, TopicContext


def _names(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise SerializationError(f"{field_name} must be a list of strings")
    return tuple(value)


def _optional_str(value: Any, field_name: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise SerializationError(f"{field_name} must be a string or null")


@dataclass(frozen=True)
class SerializableFrame:
    topic_name: str
    data: Any = None
    active_condition_names: tuple[str, ...] = ()
    disabled_condition_names: tuple[str, ...] = ()
    parent_topic_name: str | None = None
    callback_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic_name": self.topic_name,
            "parent_topic_name": self.parent_topic_name,
            "callback_name": self.callback_name,
            "data": copy.deepcopy(self.data),
            "active_condition_names": list(self.active_condition_names),
            "disabled_condition_names": list(self.disabled_condition_names),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> SerializableFrame:
        if not isinstance(raw, Mapping):
            raise SerializationError("Stack item must be an object")
        topic_name = raw.get("topic_name")
        if not isinstance(topic_name, str) or not topic_name:
            raise SerializationError("Stack item is missing topic_name")
        return cls(
            topic_name=topic_name,
            data=copy.deepcopy(raw.get("data")),
            active_condition_names=_names(
                raw.get("active_condition_names"), "active_condition_names"
            ),
            disabled_condition_names=_names(
                raw.get("disabled_condition_names"), "disabled_condition_names"
            ),
            parent_topic_name=_optional_str(raw.get("parent_topic_name"), "parent_topic_name"),
            callback_name=_optional_str(raw.get("callback_name"), "callback_name"),
        )


@dataclass(frozen=True)
class SerializableStack:
    items: tuple[SerializableFrame, ...] = ()
    virgin: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "virgin": self.virgin,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> SerializableStack:
        if not isinstance(raw, Mapping):
            raise SerializationError("Serialized stack must be an object")
        items = raw.get("items", [])
        if not isinstance(items, list):
            raise SerializationError("items must be a list")
        virgin = raw.get("virgin", True)
        if not isinstance(virgin, bool):
            raise SerializationError("virgin must be a boolean")
        return cls(
            items=tuple(SerializableFrame.from_dict(item) for item in items),
            virgin=virgin,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, text: str) -> SerializableStack:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SerializationError(f"Serialized stack is not valid JSON: {exc}") from exc
        return cls.from_dict(raw)

    def __len__(self) -> int:
        return len(self.items)


def to_serializable(stack: Stack) -> SerializableStack:
    """Project a live stack onto names and copied data."""
    return SerializableStack(
        items=tuple(
            SerializableFrame(
                topic_name=frame.topic.name,
                data=copy.deepcopy(frame.data),
                active_condition_names=tuple(frame.active_condition_names),
                disabled_condition_names=tuple(frame.disabled_condition_names),
                parent_topic_name=frame.parent_topic.name if frame.parent_topic else None,
                callback_name=frame.callback_name,
            )
            for frame in stack.items
        ),
        virgin=stack.virgin,
    )


def _rehydrate_frame(item: SerializableFrame, registry: TopicRegistry) -> TopicContext:
    topic = registry.find_topic(item.topic_name)
    parent = (
        registry.find_topic(item.parent_topic_name) if item.parent_topic_name is not None else None
    )
    if item.callback_name is not None:
        if parent is None:
            raise UnknownCallbackError(None, item.callback_name)
        parent.callback(item.callback_name)
    return TopicContext(
        topic=topic,
        data=copy.deepcopy(item.data),
        parent_topic=parent,
        callback_name=item.callback_name,
        active_condition_names=list(item.active_condition_names),
        disabled_condition_names=list(item.disabled_condition_names),
    )


def from_serializable(
    serialized: SerializableStack | Mapping[str, Any],
    registry: TopicRegistry,
) -> Stack:
    """Rebuild a live stack, resolving every name through *registry*.

    Raises ``UnknownTopicError`` / ``UnknownCallbackError`` rather than
    dropping frames that no longer resolve.
    """
    if not isinstance(serialized, SerializableStack):
        serialized = SerializableStack.from_dict(serialized)
    return Stack(
        items=[_rehydrate_frame(item, registry) for item in serialized.items],
        virgin=serialized.virgin,
    )
