from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from slackpipe.slack import OutgoingMessage


def test_payload_contains_sender_identity() -> None:
    message = OutgoingMessage(channel="#ops", username="bot", icon=":robot_face:", text="hi")

    assert message.to_payload() == {
        "channel": "#ops",
        "username": "bot",
        "text": "hi",
        "parse": "full",
        "icon_emoji": ":robot_face:",
    }


def test_empty_sender_fields_are_omitted() -> None:
    payload = OutgoingMessage(channel="#ops", text="hi").to_payload()

    assert "username" not in payload
    assert "icon_emoji" not in payload
    assert "icon_url" not in payload


def test_icon_url_is_sent_as_icon_url() -> None:
    payload = OutgoingMessage(
        channel="#ops", icon="https://example.com/bot.png", text="hi"
    ).to_payload()

    assert payload["icon_url"] == "https://example.com/bot.png"
    assert "icon_emoji" not in payload


def test_form_data_wraps_json_payload() -> None:
    message = OutgoingMessage(channel="#ops", text="naïve ✓\n")

    data = message.form_data()

    assert list(data) == ["payload"]
    assert json.loads(data["payload"])["text"] == "naïve ✓\n"


def test_with_text_returns_new_message() -> None:
    base = OutgoingMessage(channel="#ops", username="bot")

    first = base.with_text("one")
    second = base.with_text("two")

    assert base.text == ""
    assert (first.text, second.text) == ("one", "two")
    assert first.username == "bot"


def test_message_is_immutable() -> None:
    message = OutgoingMessage(channel="#ops")

    with pytest.raises(ValidationError):
        message.text = "changed"
