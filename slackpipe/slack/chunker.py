"""Splitting of oversized text into several webhook messages."""

from typing import List

import structlog

from slackpipe.throttle import RateWindow

from .client import WebhookClient
from .message import OutgoingMessage

logger = structlog.get_logger()


def split_text(text: str, size_limit: int) -> List[str]:
    """Split text into consecutive pieces of at most ``size_limit`` characters.

    Pieces are cut on character boundaries, never inside a code point, and
    joining them gives back ``text``. Empty text yields no pieces.
    """
    if size_limit <= 0:
        raise ValueError("size_limit must be positive")
    return [text[i : i + size_limit] for i in range(0, len(text), size_limit)]


class Chunker:
    """Delivers text too large for one message as an ordered series."""

    def __init__(self, client: WebhookClient, window: RateWindow, size_limit: int):
        self.client = client
        self.window = window
        self.size_limit = size_limit

    async def split_and_deliver(
        self, webhook_url: str, base_message: OutgoingMessage, text: str
    ) -> int:
        """Deliver ``text`` in size-bounded pieces, in order.

        The rate window is waited out before every piece. A fatal delivery
        error propagates and the remaining pieces are not sent.

        Returns:
            Number of pieces delivered
        """
        pieces = split_text(text, self.size_limit)
        if not pieces:
            return 0

        logger.info(
            "Splitting oversized text",
            text_length=len(text),
            chunks=len(pieces),
        )

        for index, piece in enumerate(pieces, start=1):
            await self.window.wait_out()
            await self.client.post(webhook_url, base_message.with_text(piece))
            self.window.restart()
            logger.debug("Chunk delivered", chunk=index, of=len(pieces))

        return len(pieces)
