"""Webhook delivery with Slack's retry protocol.

Features:
- One POST per delivery attempt
- Response classification (delivered / rate limited / server error / fatal)
- Retry-After handling for 429 responses
- Fixed backoff after 5xx responses and transport failures
"""

import asyncio

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx
import structlog

from slackpipe.exceptions import DeliveryError
from slackpipe.throttle import Sleep
from slackpipe.utils.constants import (
    DEFAULT_RETRY_AFTER_SECONDS,
    DEFAULT_SERVER_ERROR_BACKOFF,
)

from .message import OutgoingMessage

logger = structlog.get_logger()


class OutcomeKind(str, Enum):
    """Classification of one delivery attempt."""

    DELIVERED = "delivered"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    FATAL = "fatal"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of a single delivery attempt."""

    kind: OutcomeKind
    status_code: Optional[int] = None
    retry_after: Optional[float] = None
    error: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.kind is OutcomeKind.DELIVERED

    @property
    def retryable(self) -> bool:
        return self.kind in (OutcomeKind.RATE_LIMITED, OutcomeKind.SERVER_ERROR)


def parse_retry_after(value: Optional[str], default: float) -> float:
    """Read a ``Retry-After`` header given in whole seconds.

    Missing, unparsable or negative values fall back to ``default``.
    """
    if value is None:
        return default
    try:
        seconds = int(value.strip())
    except ValueError:
        return default
    if seconds < 0:
        return default
    return float(seconds)


class WebhookClient:
    """Posts messages to Slack incoming webhooks."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        sleep: Sleep = asyncio.sleep,
        default_retry_after: float = DEFAULT_RETRY_AFTER_SECONDS,
        server_error_backoff: float = DEFAULT_SERVER_ERROR_BACKOFF,
    ):
        """Initialize the webhook client.

        Args:
            http_client: Shared HTTP client; its lifecycle belongs to the caller
            sleep: Coroutine used for every wait
            default_retry_after: Wait for a 429 without a usable Retry-After
            server_error_backoff: Wait after a 5xx or transport failure
        """
        self.http_client = http_client
        self.sleep = sleep
        self.default_retry_after = default_retry_after
        self.server_error_backoff = server_error_backoff
        self.deliveries = 0

    async def deliver(
        self, webhook_url: str, message: OutgoingMessage
    ) -> DeliveryOutcome:
        """Make a single delivery attempt.

        A 429 response is waited out here, before returning, so the caller
        can retry immediately.
        """
        data = message.form_data()

        try:
            response = await self.http_client.post(webhook_url, data=data)
        except (httpx.UnsupportedProtocol, httpx.LocalProtocolError, httpx.InvalidURL) as e:
            # Malformed webhook URL or request; retrying cannot help
            logger.error(
                "Webhook request invalid",
                error=str(e),
                error_type=type(e).__name__,
            )
            return DeliveryOutcome(OutcomeKind.FATAL, error=str(e))
        except (httpx.NetworkError, httpx.TimeoutException, httpx.RemoteProtocolError) as e:
            logger.warning(
                "Webhook request failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return DeliveryOutcome(OutcomeKind.SERVER_ERROR, error=str(e))
        except httpx.HTTPError as e:
            logger.error(
                "Webhook request error",
                error=str(e),
                error_type=type(e).__name__,
            )
            return DeliveryOutcome(OutcomeKind.FATAL, error=str(e))

        status = response.status_code

        if response.is_success:
            self.deliveries += 1
            logger.debug(
                "Message delivered",
                status_code=status,
                channel=message.channel,
                text_length=len(message.text),
            )
            return DeliveryOutcome(OutcomeKind.DELIVERED, status_code=status)

        if status == httpx.codes.TOO_MANY_REQUESTS:
            retry_after = parse_retry_after(
                response.headers.get("Retry-After"), self.default_retry_after
            )
            logger.warning(
                "Rate limited by webhook",
                status_code=status,
                retry_after=retry_after,
            )
            await self.sleep(retry_after)
            return DeliveryOutcome(
                OutcomeKind.RATE_LIMITED, status_code=status, retry_after=retry_after
            )

        if response.is_server_error:
            logger.warning(
                "Webhook server error",
                status_code=status,
                body=response.text[:200],
            )
            return DeliveryOutcome(
                OutcomeKind.SERVER_ERROR, status_code=status, error=response.text
            )

        logger.error(
            "Webhook rejected message",
            status_code=status,
            body=response.text[:200],
        )
        return DeliveryOutcome(
            OutcomeKind.FATAL, status_code=status, error=response.text or "Not OK"
        )

    async def post(self, webhook_url: str, message: OutgoingMessage) -> None:
        """Deliver a message, retrying until the webhook accepts it.

        Raises:
            DeliveryError: If the webhook rejects the message outright
        """
        attempt = 0
        while True:
            attempt += 1
            outcome = await self.deliver(webhook_url, message)

            if outcome.delivered:
                if attempt > 1:
                    logger.info("Message delivered after retry", attempts=attempt)
                return

            if outcome.kind is OutcomeKind.RATE_LIMITED:
                continue

            if outcome.kind is OutcomeKind.SERVER_ERROR:
                logger.info(
                    "Backing off before retry",
                    delay=self.server_error_backoff,
                    attempt=attempt,
                )
                await self.sleep(self.server_error_backoff)
                continue

            raise DeliveryError(
                f"Post failed: {outcome.error}, status: {outcome.status_code}",
                status_code=outcome.status_code,
            )
