"""Web channel formatter — JSON objects in, JSON objects out."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from topicstack.formatters.base import merge_messages
from topicstack.formatters.models import InboundMessage, InboundType, OutboundMessage


class WebFormatter:
    channel = "web"

    def parse_incoming(self, raw: Any) -> InboundMessage:
        if isinstance(raw, InboundMessage):
            return raw
        if isinstance(raw, str):
            return InboundMessage(text=raw, raw=raw)
        if not isinstance(raw, dict):
            raise ValueError(f"Unsupported web message: {type(raw).__name__}")
        attachments = [
            a["url"] if isinstance(a, dict) else str(a) for a in raw.get("attachments", [])
        ]
        default_type = InboundType.MEDIA if attachments else InboundType.STRING
        msg_type = InboundType(raw.get("type", default_type))
        return InboundMessage(
            text=str(raw.get("text") or ""),
            type=msg_type,
            timestamp=raw.get("timestamp"),
            attachments=attachments,
            raw=raw,
        )

    def merge_incoming(self, raws: Sequence[Any]) -> InboundMessage:
        return merge_messages([self.parse_incoming(r) for r in raws])

    def format_outgoing(self, message: Any) -> dict[str, Any]:
        out = OutboundMessage.coerce(message)
        payload: dict[str, Any] = {"type": out.type.value, "text": out.text}
        if out.values:
            payload["values"] = list(out.values)
        return payload
