"""Channel configuration file models.

The channel file maps short channel names to Slack incoming webhooks and
carries the default sender identity::

    [user]
    name = "deploy-bot"
    icon = ":robot_face:"
    default_channel = "ops"

    [channels.ops]
    url = "https://hooks.slack.com/services/..."
    channel = "#ops"
"""

import getpass
import socket

from typing import Any, Dict, Optional, Tuple

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, field_validator

from slackpipe.exceptions import ChannelNotFoundError, IncompleteChannelError


class ChannelEntry(BaseModel):
    """One ``[channels.<name>]`` table."""

    model_config = ConfigDict(extra="ignore")

    url: Optional[AnyHttpUrl] = None
    channel: str = ""

    @field_validator("url", mode="before")
    @classmethod
    def blank_url_is_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class UserInfo(BaseModel):
    """The ``[user]`` table."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    icon: str = ""
    default_channel: str = ""


class ChannelsConfig(BaseModel):
    """Whole channel configuration file."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    user: UserInfo = Field(default_factory=UserInfo)
    channels: Dict[str, ChannelEntry] = Field(default_factory=dict)


class ChannelTarget(BaseModel):
    """Resolved destination, read-only for the rest of the run."""

    model_config = ConfigDict(frozen=True)

    name: str
    channel: str
    webhook_url: str


def default_sender_name() -> str:
    """Return ``login@hostname`` for the current process."""
    try:
        login = getpass.getuser()
    except (KeyError, OSError):
        login = "<unknown>"

    try:
        hostname = socket.gethostname() or "<unknown>"
    except OSError:
        hostname = "<unknown>"

    return f"{login}@{hostname}"


def resolve_channel(
    config: ChannelsConfig, requested: Optional[str], fallback: str
) -> ChannelTarget:
    """Pick the destination channel.

    Args:
        config: Parsed channel file
        requested: Channel name given on the command line, if any
        fallback: Channel name used when neither the command line nor the
            file names one

    Returns:
        Resolved channel target

    Raises:
        ChannelNotFoundError: If the name is not in the file
        IncompleteChannelError: If the entry has no URL or channel
    """
    name = requested or config.user.default_channel or fallback

    entry = config.channels.get(name)
    if entry is None:
        raise ChannelNotFoundError(
            f"Could not find channel {name!r} in config file"
        )
    if not entry.channel or not entry.url:
        raise IncompleteChannelError(f"Missing information for channel {name!r}")

    return ChannelTarget(name=name, channel=entry.channel, webhook_url=str(entry.url))


def resolve_sender(
    config: ChannelsConfig,
    name: Optional[str] = None,
    icon: Optional[str] = None,
) -> Tuple[str, str]:
    """Return ``(name, icon)`` with command-line overrides applied."""
    sender_name = name if name is not None else config.user.name
    if not sender_name:
        sender_name = default_sender_name()

    sender_icon = icon if icon is not None else config.user.icon
    return sender_name, sender_icon
