from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import WEBHOOK_URL, FakeWebhook
from slackpipe.exceptions import DeliveryError
from slackpipe.slack import Chunker, WebhookClient, split_text
from slackpipe.throttle import RateWindow


def test_split_text_into_bounded_pieces() -> None:
    text = "x" * 9000

    pieces = split_text(text, 4000)

    assert [len(piece) for piece in pieces] == [4000, 4000, 1000]
    assert "".join(pieces) == text


def test_split_text_exact_multiple() -> None:
    assert [len(p) for p in split_text("y" * 8000, 4000)] == [4000, 4000]


def test_split_text_empty() -> None:
    assert split_text("", 4000) == []


def test_split_text_keeps_multibyte_characters_whole() -> None:
    text = "日本語のテキスト😀é" * 7

    pieces = split_text(text, 4)

    assert "".join(pieces) == text
    assert all(len(piece) <= 4 for piece in pieces)
    # Every piece must survive a UTF-8 round trip on its own
    for piece in pieces:
        assert piece.encode("utf-8").decode("utf-8") == piece


def test_split_text_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError):
        split_text("abc", 0)


def _split_and_deliver(webhook: FakeWebhook, clock, base_message, text: str, limit: int) -> int:
    async def _run() -> int:
        async with webhook.client() as http_client:
            client = WebhookClient(http_client, sleep=clock.sleep)
            window = RateWindow(interval=2.0, clock=clock, sleep=clock.sleep)
            chunker = Chunker(client, window, limit)
            return await chunker.split_and_deliver(WEBHOOK_URL, base_message, text)

    return asyncio.run(_run())


def test_delivers_pieces_in_order_with_spacing(clock, base_message) -> None:
    webhook = FakeWebhook(clock=clock)
    text = "a" * 4000 + "b" * 4000 + "c" * 1000

    count = _split_and_deliver(webhook, clock, base_message, text, 4000)

    assert count == 3
    assert webhook.texts == ["a" * 4000, "b" * 4000, "c" * 1000]
    gaps = [later - earlier for earlier, later in zip(webhook.times, webhook.times[1:])]
    assert all(gap >= 2.0 for gap in gaps)


def test_pieces_keep_sender_identity(clock, base_message) -> None:
    webhook = FakeWebhook(clock=clock)

    _split_and_deliver(webhook, clock, base_message, "z" * 10, 4)

    assert {payload["username"] for payload in webhook.payloads} == {"deploy@build01"}
    assert {payload["channel"] for payload in webhook.payloads} == {"#ops"}


def test_empty_text_delivers_nothing(clock, base_message) -> None:
    webhook = FakeWebhook(clock=clock)

    assert _split_and_deliver(webhook, clock, base_message, "", 4000) == 0
    assert webhook.requests == []


def test_fatal_error_aborts_remaining_pieces(clock, base_message) -> None:
    webhook = FakeWebhook(
        [httpx.Response(200), httpx.Response(400, text="invalid_payload")], clock=clock
    )

    with pytest.raises(DeliveryError):
        _split_and_deliver(webhook, clock, base_message, "q" * 30, 10)

    assert len(webhook.requests) == 2
    assert webhook.texts == ["q" * 10]
