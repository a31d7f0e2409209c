"""Message formatter interface."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from topicstack.formatters.models import InboundMessage, InboundType


@runtime_checkable
class MessageFormatter(Protocol):
    """Adapts one channel's wire format to normalized messages and back."""

    channel: str

    def parse_incoming(self, raw: Any) -> InboundMessage: ...

    def merge_incoming(self, raws: Sequence[Any]) -> InboundMessage: ...

    def format_outgoing(self, message: Any) -> Any: ...


def merge_messages(messages: Sequence[InboundMessage]) -> InboundMessage:
    """Combine several inbound messages into one (texts joined by newlines)."""
    if not messages:
        raise ValueError("Cannot merge an empty list of messages")
    if len(messages) == 1:
        return messages[0]
    texts = [m.text for m in messages if m.text]
    attachments = [a for m in messages for a in m.attachments]
    timestamps = [m.timestamp for m in messages if m.timestamp is not None]
    last = messages[-1]
    return InboundMessage(
        text="\n".join(texts),
        type=InboundType.STRING if texts else last.type,
        timestamp=max(timestamps) if timestamps else None,
        attachments=attachments,
        is_postback=any(m.is_postback for m in messages),
        raw=[m.raw for m in messages],
    )
