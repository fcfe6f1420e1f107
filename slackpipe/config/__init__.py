"""Configuration module."""

from .channels import (
    ChannelEntry,
    ChannelsConfig,
    ChannelTarget,
    UserInfo,
    resolve_channel,
    resolve_sender,
)
from .loader import find_config_file, load_channels, load_config
from .settings import Settings

__all__ = [
    "ChannelEntry",
    "ChannelTarget",
    "ChannelsConfig",
    "Settings",
    "UserInfo",
    "find_config_file",
    "load_channels",
    "load_config",
    "resolve_channel",
    "resolve_sender",
]
