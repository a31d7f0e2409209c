"""
Context stack types — pure Python dataclasses.

A ``Stack`` is the per-conversation arena of ``TopicContext`` frames; the
last item is the active frame.  ``ApplicationState`` is the ephemeral view
handed to init/predicate/handler/callback code during one dispatch step
and is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from topicstack.core.topics import Callback, Topic


@dataclass(eq=False)
class TopicContext:
    """One stack frame: an instantiation of a topic for one conversation."""

    topic: Topic
    data: Any = None
    parent_topic: Topic | None = None
    callback_name: str | None = None
    active_condition_names: list[str] = field(default_factory=list)
    disabled_condition_names: list[str] = field(default_factory=list)

    @property
    def callback(self) -> Callback | None:
        if self.callback_name is None or self.parent_topic is None:
            return None
        return self.parent_topic.callback(self.callback_name)

    def allows_global(self, condition_name: str) -> bool:
        """Whether a global condition is eligible while this frame is active.

        A non-empty allow-list wins; otherwise the deny-list applies.
        """
        if self.active_condition_names:
            return condition_name in self.active_condition_names
        return condition_name not in self.disabled_condition_names


@dataclass
class Stack:
    """Ordered frames (last = active) plus the one-shot ``virgin`` flag."""

    items: list[TopicContext] = field(default_factory=list)
    virgin: bool = True

    @property
    def top(self) -> TopicContext | None:
        return self.items[-1] if self.items else None

    @property
    def topic_names(self) -> list[str]:
        return [frame.topic.name for frame in self.items]

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class ApplicationState:
    """What a running handler sees: the frame it may mutate, the stack, and host data."""

    context: TopicContext
    stack: Stack
    user_data: Any = None

    @property
    def data(self) -> Any:
        return self.context.data


def active_context(stack: Stack) -> TopicContext | None:
    return stack.top


def detached_context(topic: Topic) -> TopicContext:
    """A frame for *topic* that is not on any stack (global phase with an empty stack)."""
    return TopicContext(topic=topic)
