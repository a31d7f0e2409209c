"""
Two-phase condition dispatcher.

Per inbound message:
  1. Local phase — the active frame's topic conditions, in declared order.
  2. Global phase (only if unhandled) — the ``global`` topic's conditions,
     in declared order, filtered by the active frame's allow/deny lists.

Exactly one condition runs per message; the first predicate returning a
value other than ``None`` wins.  Predicates and handlers are awaited one
at a time.  Their exceptions propagate to the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import structlog

from topicstack.core.conditions import Condition
from topicstack.core.registry import TopicRegistry
from topicstack.core.stack import ApplicationState, Stack, TopicContext, detached_context

logger = structlog.get_logger()


@dataclass
class DispatchResult:
    """Outcome of dispatching one message."""

    output: list[Any] = field(default_factory=list)
    handled: bool = False
    topic_name: str | None = None
    condition_name: str | None = None


def normalize_output(result: Any) -> list[Any]:
    """Handler result → output list: ``None`` is empty, sequences pass through, scalars wrap."""
    if result is None:
        return []
    if isinstance(result, (list, tuple)):
        return list(result)
    return [result]


def eligible_global_conditions(
    conditions: Iterable[Condition],
    context: TopicContext | None,
) -> list[Condition]:
    """Global conditions that may run while *context* is active (all of them if none is)."""
    if context is None:
        return list(conditions)
    return [c for c in conditions if context.allows_global(c.name)]


class Dispatcher:
    """Resolves one inbound message against local-then-global conditions."""

    def __init__(self, registry: TopicRegistry) -> None:
        self._registry = registry

    async def _first_match(
        self,
        conditions: Iterable[Condition],
        state: ApplicationState,
        message: Any,
    ) -> tuple[Condition, Any] | None:
        for condition in conditions:
            parse_result = await condition.evaluate(state, message)
            if parse_result is not None:
                return condition, parse_result
        return None

    async def dispatch(self, stack: Stack, message: Any, user_data: Any = None) -> DispatchResult:
        global_topic = self._registry.global_topic
        context = stack.top

        if context is not None:
            state = ApplicationState(context=context, stack=stack, user_data=user_data)
            hit = await self._first_match(context.topic.conditions, state, message)
            if hit is not None:
                return await self._run(hit, state, context.topic.name)

        state = ApplicationState(
            context=context if context is not None else detached_context(global_topic),
            stack=stack,
            user_data=user_data,
        )
        hit = await self._first_match(
            eligible_global_conditions(global_topic.conditions, context), state, message
        )
        if hit is not None:
            return await self._run(hit, state, global_topic.name)

        logger.debug(
            "message_unhandled",
            active_topic=context.topic.name if context is not None else None,
        )
        return DispatchResult()

    async def _run(
        self,
        hit: tuple[Condition, Any],
        state: ApplicationState,
        topic_name: str,
    ) -> DispatchResult:
        condition, parse_result = hit
        logger.debug("condition_matched", topic=topic_name, condition=condition.name)
        result = await condition.run(state, parse_result)
        return DispatchResult(
            output=normalize_output(result),
            handled=True,
            topic_name=topic_name,
            condition_name=condition.name,
        )
