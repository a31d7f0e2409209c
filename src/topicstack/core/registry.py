"""Topic registry — static name → Topic lookup built once at composition time."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import structlog

from topicstack.core.exceptions import RegistryError, UnknownTopicError
from topicstack.core.topics import Callback, Topic

logger = structlog.get_logger()

GLOBAL_TOPIC = "global"
MAIN_TOPIC = "main"


class TopicRegistry:
    """
    Name-keyed table of topics.

    Frames and serialized stacks refer to topics and callbacks by name;
    this registry is the only place those names are turned back into
    live objects.  Lookups always return the registered object itself,
    never a copy.
    """

    def __init__(self, topics: Iterable[Topic] = ()) -> None:
        self._topics: dict[str, Topic] = {}
        self.register(topics)

    def register(self, topics: Iterable[Topic]) -> None:
        """Add *topics*. Two different topics may not share a name."""
        for topic in topics:
            existing = self._topics.get(topic.name)
            if existing is topic:
                continue
            if existing is not None:
                raise RegistryError(f"Topic {topic.name!r} is already registered")
            self._topics[topic.name] = topic

    def find_topic(self, name: str) -> Topic:
        try:
            return self._topics[name]
        except KeyError:
            raise UnknownTopicError(name) from None

    def get(self, name: str) -> Topic | None:
        return self._topics.get(name)

    def find_callback(self, topic_name: str, callback_name: str) -> Callback:
        """Resolve a ``(topic, callback)`` reference."""
        return self.find_topic(topic_name).callback(callback_name)

    @property
    def global_topic(self) -> Topic:
        return self.find_topic(GLOBAL_TOPIC)

    @property
    def main_topic(self) -> Topic | None:
        return self._topics.get(MAIN_TOPIC)

    def names(self) -> list[str]:
        return list(self._topics)

    def validate(self) -> None:
        """Check the composition conventions.

        ``global`` is required.  ``main`` is optional: a new conversation
        without it simply starts with an empty stack.
        """
        if GLOBAL_TOPIC not in self._topics:
            raise RegistryError(f"A topic named {GLOBAL_TOPIC!r} must be registered")
        if MAIN_TOPIC not in self._topics:
            logger.info("registry_without_main", topics=self.names())

    def __contains__(self, name: object) -> bool:
        return name in self._topics

    def __iter__(self) -> Iterator[Topic]:
        return iter(self._topics.values())

    def __len__(self) -> int:
        return len(self._topics)
