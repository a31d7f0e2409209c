"""Unit tests for the channel formatters."""

from __future__ import annotations

import pytest

from topicstack.formatters import (
    InboundMessage,
    InboundType,
    MessageFormatter,
    MessengerFormatter,
    OutboundMessage,
    OutboundType,
    WebFormatter,
    get_formatter,
    merge_messages,
)


class TestGetFormatter:
    @pytest.mark.parametrize(
        ("channel", "cls"), [("web", WebFormatter), ("messenger", MessengerFormatter)]
    )
    def test_known_channels(self, channel: str, cls: type) -> None:
        formatter = get_formatter(channel)
        assert isinstance(formatter, cls)
        assert isinstance(formatter, MessageFormatter)

    def test_unknown_channel(self) -> None:
        with pytest.raises(ValueError, match="Unknown channel"):
            get_formatter("telex")


class TestWebFormatter:
    def test_plain_string(self) -> None:
        msg = WebFormatter().parse_incoming("hello")
        assert msg.text == "hello"
        assert msg.type == InboundType.STRING

    def test_dict_with_attachments_is_media(self) -> None:
        msg = WebFormatter().parse_incoming(
            {"text": "", "attachments": [{"url": "https://x/a.png"}], "timestamp": 3}
        )
        assert msg.type == InboundType.MEDIA
        assert msg.attachments == ["https://x/a.png"]
        assert msg.timestamp == 3

    def test_null_text_is_empty(self) -> None:
        msg = WebFormatter().parse_incoming(
            {"text": None, "attachments": [{"url": "https://x/a.png"}]}
        )
        assert msg.text == ""
        assert msg.type == InboundType.MEDIA

    def test_unsupported_raw(self) -> None:
        with pytest.raises(ValueError):
            WebFormatter().parse_incoming(42)

    def test_outgoing_string(self) -> None:
        assert WebFormatter().format_outgoing("hi") == {"type": "string", "text": "hi"}

    def test_outgoing_options(self) -> None:
        out = WebFormatter().format_outgoing(
            {"type": "option", "text": "Pick", "values": ["a", "b"]}
        )
        assert out == {"type": "option", "text": "Pick", "values": ["a", "b"]}

    def test_outgoing_scalar(self) -> None:
        assert WebFormatter().format_outgoing(15) == {"type": "string", "text": "15"}


class TestMessengerFormatter:
    def test_text_message(self) -> None:
        msg = MessengerFormatter().parse_incoming({"message": {"text": "hi"}, "timestamp": 9})
        assert msg.text == "hi"
        assert msg.timestamp == 9
        assert msg.is_postback is False

    def test_postback_payload_becomes_text(self) -> None:
        msg = MessengerFormatter().parse_incoming({"postback": {"payload": "signup now"}})
        assert msg.text == "signup now"
        assert msg.is_postback is True

    def test_attachment_only_is_media(self) -> None:
        raw = {"message": {"attachments": [{"payload": {"url": "https://x/p.jpg"}}]}}
        msg = MessengerFormatter().parse_incoming(raw)
        assert msg.type == InboundType.MEDIA
        assert msg.attachments == ["https://x/p.jpg"]

    def test_null_text_is_empty(self) -> None:
        raw = {"message": {"text": None, "attachments": [{"payload": {"url": "https://x/p.jpg"}}]}}
        msg = MessengerFormatter().parse_incoming(raw)
        assert msg.text == ""
        assert msg.type == InboundType.MEDIA

    def test_options_become_quick_replies(self) -> None:
        out = MessengerFormatter().format_outgoing(
            OutboundMessage(type=OutboundType.OPTION, text="", values=["yes", "no"])
        )
        assert out["text"] == "Choose one:"
        assert [q["payload"] for q in out["quick_replies"]] == ["yes", "no"]

    def test_text_out(self) -> None:
        assert MessengerFormatter().format_outgoing("ok") == {"text": "ok"}

    def test_non_dict_rejected(self) -> None:
        with pytest.raises(ValueError):
            MessengerFormatter().parse_incoming("hi")


class TestMergeMessages:
    def test_joins_text_and_keeps_latest_timestamp(self) -> None:
        merged = merge_messages(
            [
                InboundMessage(text="signup", timestamp=1),
                InboundMessage(text="Yak", timestamp=5),
            ]
        )
        assert merged.text == "signup\nYak"
        assert merged.timestamp == 5

    def test_single_message_returned_as_is(self) -> None:
        msg = InboundMessage(text="x")
        assert merge_messages([msg]) is msg

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError):
            merge_messages([])

    def test_web_merge_incoming(self) -> None:
        merged = WebFormatter().merge_incoming(["a", {"text": "b"}])
        assert merged.text == "a\nb"
