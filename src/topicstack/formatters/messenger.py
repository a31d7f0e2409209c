"""Messenger-style channel formatter (postbacks in, quick replies out)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from topicstack.formatters.base import merge_messages
from topicstack.formatters.models import (
    InboundMessage,
    InboundType,
    OutboundMessage,
    OutboundType,
)


class MessengerFormatter:
    channel = "messenger"

    def parse_incoming(self, raw: Any) -> InboundMessage:
        if not isinstance(raw, dict):
            raise ValueError(f"Unsupported messenger event: {type(raw).__name__}")
        timestamp = raw.get("timestamp")
        postback = raw.get("postback")
        if postback:
            return InboundMessage(
                text=str(postback.get("payload", "")),
                timestamp=timestamp,
                is_postback=True,
                raw=raw,
            )
        message = raw.get("message", raw)
        attachments = [
            a.get("payload", {}).get("url", "")
            for a in message.get("attachments", [])
            if isinstance(a, dict)
        ]
        return InboundMessage(
            text=str(message.get("text") or ""),
            type=(
                InboundType.MEDIA
                if attachments and not message.get("text")
                else InboundType.STRING
            ),
            timestamp=timestamp,
            attachments=attachments,
            raw=raw,
        )

    def merge_incoming(self, raws: Sequence[Any]) -> InboundMessage:
        return merge_messages([self.parse_incoming(r) for r in raws])

    def format_outgoing(self, message: Any) -> dict[str, Any]:
        out = OutboundMessage.coerce(message)
        if out.type == OutboundType.OPTION:
            return {
                "text": out.text or "Choose one:",
                "quick_replies": [
                    {"content_type": "text", "title": v, "payload": v} for v in out.values
                ],
            }
        return {"text": out.text}
