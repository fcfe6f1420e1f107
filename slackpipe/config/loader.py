"""Configuration loading."""

import tomllib

from pathlib import Path
from typing import Iterable, Optional

import structlog

from pydantic import ValidationError

from slackpipe.exceptions import (
    ConfigFileNotFoundError,
    ConfigurationError,
    InvalidConfigError,
)
from slackpipe.utils.constants import CONFIG_SEARCH_PATHS

from .channels import ChannelsConfig
from .settings import Settings


logger = structlog.get_logger()


def load_config(**overrides) -> Settings:
    """Load configuration from environment variables.

    Returns:
        Configured Settings instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    logger.debug("Loading configuration from environment")

    try:
        # pydantic-settings reads SLACKPIPE_* from env automatically
        settings = Settings(**overrides)
    except ValidationError as e:
        logger.error("Failed to load configuration", error=str(e))
        raise InvalidConfigError(f"Configuration loading failed: {e}") from e

    logger.debug(
        "Configuration loaded successfully",
        size_limit=settings.size_limit,
        rate_limit_window=settings.rate_limit_window,
    )
    return settings


def find_config_file(
    candidates: Iterable[str] = CONFIG_SEARCH_PATHS,
) -> Path:
    """Return the first channel file that exists.

    Raises:
        ConfigFileNotFoundError: If none of the candidates exists
    """
    searched = []
    for candidate in candidates:
        path = Path(candidate).expanduser()
        searched.append(str(path))
        if path.is_file():
            return path

    raise ConfigFileNotFoundError(
        f"Config file not found (searched {', '.join(searched)})"
    )


def load_channels(path: Optional[Path] = None) -> ChannelsConfig:
    """Read and validate the channel file.

    Args:
        path: Explicit file; the standard locations are searched when omitted

    Raises:
        ConfigurationError: If the file is missing, unreadable or malformed
    """
    if path is None:
        path = find_config_file()
    elif not path.is_file():
        raise ConfigFileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, "rb") as handle:
            raw = tomllib.load(handle)
    except OSError as e:
        raise ConfigurationError(f"Could not read config {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise InvalidConfigError(f"Could not parse config {path}: {e}") from e

    try:
        config = ChannelsConfig.model_validate(raw)
    except ValidationError as e:
        raise InvalidConfigError(f"Invalid config {path}: {e}") from e

    logger.info(
        "Channel configuration loaded",
        path=str(path),
        channels=sorted(config.channels),
    )
    return config
