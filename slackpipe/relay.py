"""Slack relay facade.

Wires settings, channel target and sender identity into the delivery
components, and owns the HTTP client for the duration of a run.
"""

import sys

from typing import Optional, TextIO

import httpx
import structlog

from slackpipe import __version__
from slackpipe.config.channels import ChannelTarget
from slackpipe.config.settings import Settings
from slackpipe.pipeline import (
    BatchingScheduler,
    LineProducer,
    LineReader,
    run_pipeline,
)
from slackpipe.slack import Chunker, OutgoingMessage, WebhookClient
from slackpipe.throttle import Clock, RateWindow, Sleep

logger = structlog.get_logger()


class SlackRelay:
    """Relays text to one Slack channel."""

    def __init__(
        self,
        config: Settings,
        target: ChannelTarget,
        username: str = "",
        icon: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Sleep] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize the relay.

        Args:
            config: Application settings
            target: Resolved destination channel
            username: Sender display name
            icon: Sender icon (emoji name or image URL)
            http_client: Client to use instead of creating one
            sleep: Wait coroutine override, used by tests
            clock: Monotonic clock override, used by tests
        """
        self.config = config
        self.target = target
        self.base_message = OutgoingMessage(
            channel=target.channel, username=username, icon=icon
        )
        self._http_client = http_client
        self._owns_client = http_client is None

        window_kwargs = {}
        if sleep is not None:
            window_kwargs["sleep"] = sleep
        if clock is not None:
            window_kwargs["clock"] = clock
        self._window_kwargs = window_kwargs
        self._sleep = sleep

    async def __aenter__(self) -> "SlackRelay":
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.http_timeout),
                headers={"User-Agent": f"slackpipe/{__version__}"},
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _build_client(self) -> WebhookClient:
        if self._http_client is None:
            raise RuntimeError("SlackRelay must be used as an async context manager")
        kwargs = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        return WebhookClient(
            self._http_client,
            default_retry_after=self.config.default_retry_after,
            server_error_backoff=self.config.server_error_backoff,
            **kwargs,
        )

    def _build_window(self) -> RateWindow:
        return RateWindow(interval=self.config.rate_limit_window, **self._window_kwargs)

    async def send_text(self, text: str) -> int:
        """Deliver one literal message, split when it is too long.

        Returns:
            Number of messages posted
        """
        client = self._build_client()
        logger.info(
            "Sending single message",
            channel=self.target.channel,
            text_length=len(text),
        )

        if len(text) > self.config.size_limit:
            chunker = Chunker(client, self._build_window(), self.config.size_limit)
            return await chunker.split_and_deliver(
                self.target.webhook_url, self.base_message, text
            )

        await client.post(self.target.webhook_url, self.base_message.with_text(text))
        return 1

    async def stream(
        self, reader: LineReader, echo: Optional[TextIO] = None
    ) -> BatchingScheduler:
        """Relay every line from ``reader`` until it is exhausted.

        Args:
            reader: Input lines
            echo: Stream to copy input to; defaults to stdout when the
                ``echo`` setting is on

        Returns:
            The scheduler, for inspection after the run
        """
        if echo is None and self.config.echo:
            echo = sys.stdout

        client = self._build_client()
        window = self._build_window()
        scheduler = BatchingScheduler(
            client=client,
            target=self.target,
            base_message=self.base_message,
            window=window,
            size_limit=self.config.size_limit,
        )
        producer = LineProducer(reader, echo=echo)

        logger.info("Streaming input", channel=self.target.channel)
        await run_pipeline(producer, scheduler)
        return scheduler
