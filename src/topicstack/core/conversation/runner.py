"""
Conversation runner — host-side glue around ``TopicEngine``.

Loads a conversation's serialized stack from a store, runs one turn,
saves the new stack and formats the output for the channel.

Correctness invariants:
  - Turns for the same conversation id never overlap within this
    process (one ``asyncio.Lock`` per id, dropped once no turn holds or
    awaits it).  Multi-process hosts must provide their own
    single-writer primitive.
  - A turn that raises (protocol error, handler error, timeout) saves
    nothing: the stored state stays as it was before the turn.
  - The engine has no deadline of its own; ``turn_timeout`` is applied
    here with ``asyncio.wait_for``.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Sequence
from typing import Any

import structlog

from topicstack.core.engine import TopicEngine, TurnResult
from topicstack.core.exceptions import TurnTimeoutError
from topicstack.core.store.base import ConversationStore
from topicstack.core.trace import TurnRecord, TurnTrace, excerpt
from topicstack.formatters import MessageFormatter, WebFormatter

logger = structlog.get_logger()


class ConversationRunner:
    """Processes messages for many conversations against one engine and store."""

    def __init__(
        self,
        engine: TopicEngine,
        store: ConversationStore,
        *,
        formatter: MessageFormatter | None = None,
        turn_timeout: float | None = None,
        trace: TurnTrace | None = None,
    ) -> None:
        self.engine = engine
        self.store = store
        self.formatter = formatter or WebFormatter()
        self.turn_timeout = turn_timeout
        self.trace = trace
        # an entry lives only while a turn for that id holds or awaits its lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        return lock

    async def process(
        self,
        conversation_id: str,
        raw_message: Any,
        user_data: Any = None,
    ) -> list[Any]:
        """Run one turn for *conversation_id* and return formatted output."""
        message = self.formatter.parse_incoming(raw_message)
        return await self._turn(conversation_id, message, user_data)

    async def process_batch(
        self,
        conversation_id: str,
        raw_messages: Sequence[Any],
        user_data: Any = None,
    ) -> list[Any]:
        """Merge several raw messages into one and run a single turn."""
        message = self.formatter.merge_incoming(raw_messages)
        return await self._turn(conversation_id, message, user_data)

    def reset(self, conversation_id: str) -> bool:
        """Forget a conversation; its next message starts a fresh stack."""
        return self.store.clear(conversation_id)

    async def _turn(self, conversation_id: str, message: Any, user_data: Any) -> list[Any]:
        lock = self._lock(conversation_id)
        async with lock:
            previous = self.store.get(conversation_id)
            depth_before = len(previous) if previous is not None else 0

            turn = self.engine.handle(message, previous, user_data)
            if self.turn_timeout is not None:
                try:
                    result: TurnResult = await asyncio.wait_for(turn, self.turn_timeout)
                except TimeoutError:
                    logger.warning(
                        "turn_timeout",
                        conversation_id=conversation_id,
                        timeout=self.turn_timeout,
                    )
                    raise TurnTimeoutError(conversation_id, self.turn_timeout) from None
            else:
                result = await turn

            self.store.save(conversation_id, result.state)

        if self.trace is not None:
            self.trace.record(
                TurnRecord(
                    conversation_id=conversation_id,
                    input_excerpt=excerpt(getattr(message, "text", None)),
                    handled=result.handled,
                    topic=result.topic_name,
                    condition=result.condition_name,
                    depth_before=depth_before,
                    depth_after=len(result.state),
                    output_count=len(result.output),
                )
            )

        return [self.formatter.format_outgoing(item) for item in result.output]
