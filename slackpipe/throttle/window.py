"""Delivery spacing for the webhook rate limit.

Slack incoming webhooks accept roughly one message per second per channel and
answer 429 beyond that. Rather than a token bucket we keep a single window:
after every delivery the next one must wait until ``interval`` seconds have
passed since the window started.
"""

import asyncio
import time

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger()

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RateWindow:
    """Minimum spacing between consecutive deliveries."""

    interval: float
    clock: Clock = time.monotonic
    sleep: Sleep = asyncio.sleep
    started_at: Optional[float] = field(default=None)

    def __post_init__(self) -> None:
        if self.started_at is None:
            self.started_at = self.clock()

    def elapsed(self) -> float:
        """Seconds since the current window started."""
        return self.clock() - self.started_at

    def remaining(self) -> float:
        """Seconds left before the next delivery may go out."""
        return max(0.0, self.interval - self.elapsed())

    def expired(self) -> bool:
        return self.remaining() <= 0.0

    async def wait_out(self) -> float:
        """Sleep until the window has elapsed.

        Returns:
            Seconds slept (0.0 when the window had already elapsed)
        """
        delay = self.remaining()
        if delay > 0:
            logger.debug("Waiting out rate limit window", delay=round(delay, 3))
            await self.sleep(delay)
        return delay

    def restart(self) -> None:
        """Start a new window now."""
        self.started_at = self.clock()
