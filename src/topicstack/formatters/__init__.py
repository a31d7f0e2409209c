"""Channel message formatters."""

from __future__ import annotations

from topicstack.formatters.base import MessageFormatter, merge_messages
from topicstack.formatters.messenger import MessengerFormatter
from topicstack.formatters.models import (
    InboundMessage,
    InboundType,
    OutboundMessage,
    OutboundType,
)
from topicstack.formatters.web import WebFormatter

_FORMATTERS: dict[str, type] = {
    WebFormatter.channel: WebFormatter,
    MessengerFormatter.channel: MessengerFormatter,
}


def get_formatter(channel: str) -> MessageFormatter:
    """Return a formatter instance for *channel*."""
    try:
        return _FORMATTERS[channel]()
    except KeyError:
        raise ValueError(
            f"Unknown channel {channel!r}. Available: {', '.join(sorted(_FORMATTERS))}"
        ) from None


__all__ = [
    "InboundMessage",
    "InboundType",
    "MessageFormatter",
    "MessengerFormatter",
    "OutboundMessage",
    "OutboundType",
    "WebFormatter",
    "get_formatter",
    "merge_messages",
]
