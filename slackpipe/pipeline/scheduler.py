"""Batching scheduler: the consumer side of the pipeline.

Lines are accumulated into a pending batch which is flushed when:
1) the next line would push it past the size limit,
2) a line too large for any batch arrives (it goes to the chunker),
3) the rate window has elapsed with text still buffered,
4) the input ends.

Delivery happens inline, so while a flush (including its waits) is running
the scheduler does not take new lines and the producer blocks.
"""

import asyncio

from enum import Enum
from typing import Optional

import structlog

from slackpipe.config.channels import ChannelTarget
from slackpipe.slack import Chunker, OutgoingMessage, WebhookClient
from slackpipe.throttle import RateWindow

from .batch import PendingBatch

logger = structlog.get_logger()

# Queue item marking the end of input.
END_OF_STREAM = None


class SchedulerState(str, Enum):
    """Lifecycle of the scheduler."""

    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"
    DRAINING = "draining"
    DONE = "done"


class BatchingScheduler:
    """Turns a stream of lines into rate-limited, size-bounded deliveries."""

    def __init__(
        self,
        client: WebhookClient,
        target: ChannelTarget,
        base_message: OutgoingMessage,
        window: RateWindow,
        size_limit: int,
        chunker: Optional[Chunker] = None,
    ):
        self.client = client
        self.target = target
        self.base_message = base_message
        self.window = window
        self.size_limit = size_limit
        self.chunker = chunker or Chunker(client, window, size_limit)

        self.batch = PendingBatch(window=window)
        self.state = SchedulerState.ACCUMULATING
        self.flushes = 0
        self.done = asyncio.Event()

    async def run(self, queue: "asyncio.Queue[Optional[str]]") -> None:
        """Consume lines from ``queue`` until the end-of-stream marker.

        Waits for either the next line or the end of the current rate window,
        whichever comes first, so stale text is flushed even when the input
        goes quiet.
        """
        logger.info(
            "Scheduler started",
            channel=self.target.channel,
            size_limit=self.size_limit,
            rate_limit_window=self.window.interval,
        )
        getter: Optional[asyncio.Task] = None

        try:
            while True:
                if not self.batch.is_empty() and self.window.expired():
                    await self.flush()

                timeout = None if self.batch.is_empty() else self.window.remaining()
                if getter is None:
                    getter = asyncio.ensure_future(queue.get())

                done, _ = await asyncio.wait({getter}, timeout=timeout)
                if not done:
                    # Window elapsed with no new line
                    continue

                line = getter.result()
                getter = None
                queue.task_done()

                if line is END_OF_STREAM:
                    await self.drain()
                    return

                await self.accept(line)
        finally:
            if getter is not None and not getter.done():
                getter.cancel()

    async def accept(self, line: str) -> None:
        """Take one line into the pipeline."""
        if len(line) > self.size_limit:
            if not self.batch.is_empty():
                await self.window.wait_out()
                await self.flush()

            self.state = SchedulerState.FLUSHING
            try:
                await self.chunker.split_and_deliver(
                    self.target.webhook_url, self.base_message, line
                )
            finally:
                self.state = SchedulerState.ACCUMULATING
            self.batch.reset()
            return

        if self.batch.would_overflow(line, self.size_limit):
            await self.window.wait_out()
            await self.flush()

        self.batch.append(line)

    async def flush(self) -> None:
        """Send the pending batch as one message and start a new window."""
        if self.batch.is_empty():
            return

        previous = self.state
        self.state = SchedulerState.FLUSHING
        text = self.batch.text
        logger.debug("Flushing batch", text_length=len(text))
        try:
            await self.client.post(
                self.target.webhook_url, self.base_message.with_text(text)
            )
        finally:
            self.state = previous

        self.flushes += 1
        self.batch.reset()

    async def drain(self) -> None:
        """Deliver whatever is left once the input has ended."""
        self.state = SchedulerState.DRAINING
        if not self.batch.is_empty():
            await self.window.wait_out()
            await self.flush()

        self.state = SchedulerState.DONE
        self.done.set()
        logger.info(
            "Scheduler finished",
            flushes=self.flushes,
            deliveries=self.client.deliveries,
        )
