"""Rate limiting for outgoing deliveries."""

from .window import Clock, RateWindow, Sleep

__all__ = ["Clock", "RateWindow", "Sleep"]
