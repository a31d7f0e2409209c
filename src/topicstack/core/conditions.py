"""
Conditions — the unit of message routing within a topic.

A condition pairs a *predicate* with a *handler*:

  - ``predicate(state, message)`` returns ``None`` for "no match"; any
    other value (``0``, ``""`` and ``False`` included) is a match and is
    passed on to the handler as the parse result.
  - ``handler(state, parse_result)`` returns the outbound message(s).

Both may be plain functions or coroutine functions.

Usage::

    greet = regex_condition(
        "greet",
        [r"^hello"],
        lambda state, result: "hey, what's up!",
    )
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from topicstack.core.awaitables import call

if TYPE_CHECKING:
    from topicstack.core.stack import ApplicationState

logger = structlog.get_logger()

Predicate = Callable[..., Any]
Handler = Callable[..., Any]
TextExtractor = Callable[[Any], str | None]


@dataclass(frozen=True, eq=False)
class Condition:
    """A named predicate + handler pair. Declaration order within a topic matters."""

    name: str
    predicate: Predicate
    handler: Handler

    async def evaluate(self, state: ApplicationState, message: Any) -> Any:
        """Run the predicate; ``None`` means no match."""
        return await call(self.predicate, state, message)

    async def run(self, state: ApplicationState, parse_result: Any) -> Any:
        """Run the handler with a parse result produced by :meth:`evaluate`."""
        return await call(self.handler, state, parse_result)


def define_condition(name: str, predicate: Predicate, handler: Handler) -> Condition:
    """Build a condition from a predicate and a handler."""
    if not name:
        raise ValueError("Condition name must not be empty")
    return Condition(name=name, predicate=predicate, handler=handler)


# ---------------------------------------------------------------------------
# Regex predicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RegexParseResult:
    """Result of a regex predicate: the message, which pattern matched, and the match."""

    message: Any
    index: int
    match: re.Match[str]

    @property
    def groups(self) -> tuple[str | Any, ...]:
        return self.match.groups()

    def group(self, n: int = 0) -> str | Any:
        return self.match.group(n)


def message_text(message: Any) -> str | None:
    """Default text extractor: strings pass through, otherwise ``.text`` or ``["text"]``."""
    if message is None:
        return None
    if isinstance(message, str):
        return message
    if isinstance(message, dict):
        return message.get("text")
    return getattr(message, "text", None)


def _compile(patterns: Sequence[str | re.Pattern[str]]) -> list[re.Pattern[str]]:
    return [p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns]


def regex_predicate(
    patterns: Sequence[str | re.Pattern[str]],
    text_of: TextExtractor = message_text,
) -> Predicate:
    """Build a predicate that searches the message text with each pattern in order.

    The first pattern that matches wins; its index is reported in the
    :class:`RegexParseResult`. Messages without text never match.
    """
    compiled = _compile(patterns)

    def predicate(state: ApplicationState, message: Any) -> RegexParseResult | None:
        text = text_of(message)
        if text is None:
            return None
        for i, pattern in enumerate(compiled):
            match = pattern.search(text)
            if match:
                return RegexParseResult(message=message, index=i, match=match)
        return None

    return predicate


def regex_condition(
    name: str,
    patterns: Sequence[str | re.Pattern[str]],
    handler: Handler,
    *,
    text_of: TextExtractor = message_text,
) -> Condition:
    """Convenience: a condition whose predicate is :func:`regex_predicate`."""
    return define_condition(name, regex_predicate(patterns, text_of), handler)


def no_match_on(*exc_types: type[BaseException]) -> Callable[[Predicate], Predicate]:
    """Decorate a predicate so that the given exception types mean "no match".

    The dispatcher never suppresses predicate errors on its own; a
    condition that wants this behaviour opts in explicitly.
    """
    if not exc_types:
        raise ValueError("no_match_on() needs at least one exception type")

    def decorate(predicate: Predicate) -> Predicate:
        @functools.wraps(predicate)
        async def guarded(state: ApplicationState, message: Any) -> Any:
            try:
                return await call(predicate, state, message)
            except exc_types as exc:
                logger.debug(
                    "predicate_error_as_no_match",
                    predicate=getattr(predicate, "__name__", repr(predicate)),
                    error=str(exc),
                )
                return None

        return guarded

    return decorate
