"""Custom exceptions for slackpipe."""

from typing import Optional


class SlackPipeError(Exception):
    """Base exception for slackpipe."""

    pass


class ConfigurationError(SlackPipeError):
    """Configuration-related errors."""

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """No channel configuration file could be found."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration is invalid."""

    pass


class ChannelNotFoundError(ConfigurationError):
    """Requested channel is not present in the channel configuration."""

    pass


class IncompleteChannelError(ConfigurationError):
    """Channel entry lacks a webhook URL or channel identifier."""

    pass


class EncodingError(SlackPipeError):
    """Outgoing message could not be serialized."""

    pass


class DeliveryError(SlackPipeError):
    """Webhook rejected a message in a way that retrying cannot fix."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InputStreamError(SlackPipeError):
    """Reading the input stream failed."""

    pass
