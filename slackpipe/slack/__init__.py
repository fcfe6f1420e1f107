"""Slack incoming webhook integration."""

from .chunker import Chunker, split_text
from .client import DeliveryOutcome, OutcomeKind, WebhookClient, parse_retry_after
from .message import OutgoingMessage

__all__ = [
    # Delivery
    "WebhookClient",
    "DeliveryOutcome",
    "OutcomeKind",
    "parse_retry_after",
    # Chunking
    "Chunker",
    "split_text",
    # Wire format
    "OutgoingMessage",
]
