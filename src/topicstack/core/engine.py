"""
Topic engine — the ``handler(input, serialized_state?, user_data?)`` surface.

One call processes exactly one message to completion:

  1. Rehydrate the stack from the serialized state (fresh virgin stack if
     none was given).
  2. If the stack is virgin, consume the flag and auto-enter ``main``.
  3. Dispatch the message (local phase, then global phase).
  4. Re-serialize the stack and return it with the output.

The engine performs no locking and no timeouts.  Hosts must not run two
turns for the same conversation concurrently, and must wrap a turn with
their own deadline if predicates or handlers can hang
(``ConversationRunner`` does both for single-process hosts).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from topicstack.core.dispatcher import Dispatcher
from topicstack.core.protocol import enter_topic
from topicstack.core.registry import TopicRegistry
from topicstack.core.serialization import SerializableStack, from_serializable, to_serializable
from topicstack.core.stack import ApplicationState, Stack, detached_context
from topicstack.core.topics import Topic

logger = structlog.get_logger()


@dataclass(frozen=True)
class TurnResult:
    state: SerializableStack
    output: list[Any] = field(default_factory=list)
    handled: bool = False
    topic_name: str | None = None
    condition_name: str | None = None


class TopicEngine:
    """Runs turns against a validated topic registry."""

    def __init__(self, topics: TopicRegistry | Iterable[Topic]) -> None:
        registry = topics if isinstance(topics, TopicRegistry) else TopicRegistry(topics)
        registry.validate()
        self.registry = registry
        self._dispatcher = Dispatcher(registry)

    def load(self, serialized_state: SerializableStack | Mapping[str, Any] | None) -> Stack:
        if serialized_state is None:
            return Stack()
        return from_serializable(serialized_state, self.registry)

    async def _enter_main(self, stack: Stack, user_data: Any) -> None:
        stack.virgin = False
        main = self.registry.main_topic
        if main is None:
            return
        global_topic = self.registry.global_topic
        state = ApplicationState(
            context=detached_context(global_topic), stack=stack, user_data=user_data
        )
        await enter_topic(state, main, global_topic)

    async def handle(
        self,
        message: Any,
        serialized_state: SerializableStack | Mapping[str, Any] | None = None,
        user_data: Any = None,
    ) -> TurnResult:
        stack = self.load(serialized_state)
        if stack.virgin:
            await self._enter_main(stack, user_data)

        depth_before = len(stack)
        result = await self._dispatcher.dispatch(stack, message, user_data)

        logger.debug(
            "turn_complete",
            handled=result.handled,
            topic=result.topic_name,
            condition=result.condition_name,
            depth_before=depth_before,
            depth_after=len(stack),
            outputs=len(result.output),
        )
        return TurnResult(
            state=to_serializable(stack),
            output=result.output,
            handled=result.handled,
            topic_name=result.topic_name,
            condition_name=result.condition_name,
        )

    __call__ = handle


def init(topics: TopicRegistry | Iterable[Topic]) -> TopicEngine:
    """Build an engine for *topics*; the returned object is the turn handler."""
    return TopicEngine(topics)
