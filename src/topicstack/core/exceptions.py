"""Exception hierarchy for topicstack.

Everything raised on purpose by the engine derives from ``TopicStackError``
so hosts can catch the whole family at the turn boundary.
"""

from __future__ import annotations


class TopicStackError(Exception):
    """Base class for all topicstack errors."""


class ConfigError(TopicStackError):
    """Configuration file is invalid."""


class ConfigNotFoundError(ConfigError):
    """Configuration file does not exist."""


class RegistryError(TopicStackError):
    """Topic registry composition is invalid (duplicate names, missing ``global``)."""


class UnknownTopicError(RegistryError):
    """A topic name could not be resolved through the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown topic: {name!r}")
        self.name = name


class UnknownCallbackError(TopicStackError):
    """A callback selector could not be resolved on its parent topic."""

    def __init__(self, topic_name: str | None, callback: object) -> None:
        super().__init__(f"Unknown callback {callback!r} on topic {topic_name!r}")
        self.topic_name = topic_name
        self.callback = callback


class IllegalTopicTransitionError(TopicStackError):
    """enter/exit/clear was called from a context that is not the active frame."""


class SerializationError(TopicStackError):
    """A serialized stack is malformed."""


class StoreError(TopicStackError):
    """The conversation store could not read or write a state blob."""


class TurnTimeoutError(TopicStackError):
    """A turn exceeded the host-configured deadline."""

    def __init__(self, conversation_id: str, timeout: float) -> None:
        super().__init__(f"Turn for conversation {conversation_id!r} exceeded {timeout}s")
        self.conversation_id = conversation_id
        self.timeout = timeout
