"""Normalized message types — what the engine sees regardless of channel."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class InboundType(StrEnum):
    STRING = "string"
    MEDIA = "media"


class OutboundType(StrEnum):
    STRING = "string"
    OPTION = "option"


@dataclass
class InboundMessage:
    text: str = ""
    type: InboundType = InboundType.STRING
    timestamp: float | None = None
    attachments: list[str] = field(default_factory=list)
    is_postback: bool = False
    raw: Any = None


@dataclass
class OutboundMessage:
    type: OutboundType = OutboundType.STRING
    text: str = ""
    values: list[str] = field(default_factory=list)

    @classmethod
    def coerce(cls, value: Any) -> OutboundMessage:
        """Turn a handler output item into an ``OutboundMessage``.

        Strings become text messages; dicts with ``type``/``text``/``values``
        keys are read field by field; anything else is rendered with ``str``.
        """
        if isinstance(value, OutboundMessage):
            return value
        if isinstance(value, str):
            return cls(text=value)
        if isinstance(value, dict):
            return cls(
                type=OutboundType(value.get("type", OutboundType.STRING)),
                text=str(value.get("text", "")),
                values=[str(v) for v in value.get("values", [])],
            )
        return cls(text=str(value))
