"""Main entry point for slackpipe."""

import argparse
import asyncio
import logging
import sys

from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

import structlog

from slackpipe import __version__
from slackpipe.config import (
    load_channels,
    load_config,
    resolve_channel,
    resolve_sender,
)
from slackpipe.exceptions import ConfigurationError, SlackPipeError
from slackpipe.pipeline import open_line_reader
from slackpipe.relay import SlackRelay
from slackpipe.utils.constants import (
    APP_DESCRIPTION,
    DEFAULT_LOG_FILE_BACKUPS,
    DEFAULT_LOG_FILE_MAX_BYTES,
)


def setup_logging(debug: bool = False) -> None:
    """Configure structured logging on stderr.

    stdout is left alone because it carries the echoed input.
    """
    log_level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers
    root_logger.handlers = []

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if not debug
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def apply_log_settings(level: str, log_file: Optional[Path] = None) -> None:
    """Apply the configured level and add the rotating log file, if any."""
    log_level = getattr(logging, level, logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers:
        handler.setLevel(log_level)

    # File handler with rotation
    if log_file is not None:
        file_handler = RotatingFileHandler(
            filename=log_file,
            maxBytes=DEFAULT_LOG_FILE_MAX_BYTES,
            backupCount=DEFAULT_LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="slackpipe",
        description=APP_DESCRIPTION,
        usage="%(prog)s [-c channel] [-n name] [-i icon] [message ...]",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "With a message, post it once and exit. Without one, relay\n"
            "standard input line by line until it closes."
        ),
    )

    parser.add_argument(
        "--version", action="version", version=f"slackpipe {__version__}"
    )
    parser.add_argument("-c", "--channel", help="Channel name from the config file")
    parser.add_argument("-n", "--name", help="Sender name")
    parser.add_argument("-i", "--icon", help="Sender icon (emoji or image URL)")
    parser.add_argument(
        "--config-file", type=Path, help="Path to the channel configuration file"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Do not echo input to stdout"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("message", nargs="*", help="Message to post")

    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point.

    Returns:
        Process exit status
    """
    args = parse_args(argv)

    overrides = {}
    if args.debug:
        overrides["debug"] = True
    if args.quiet:
        overrides["echo"] = False
    if args.config_file is not None:
        overrides["config_file"] = args.config_file

    setup_logging(debug=args.debug)
    logger = structlog.get_logger()

    try:
        config = load_config(**overrides)
        apply_log_settings(
            "DEBUG" if config.debug else config.log_level, config.log_file
        )

        channels = load_channels(config.config_file)
        target = resolve_channel(channels, args.channel, config.default_channel)
        username, icon = resolve_sender(channels, args.name, args.icon)
    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e))
        return 1

    logger.info(
        "Starting slackpipe",
        version=__version__,
        channel=target.name,
        mode="single" if args.message else "stream",
    )

    try:
        async with SlackRelay(config, target, username=username, icon=icon) as relay:
            if args.message:
                await relay.send_text(" ".join(args.message))
            else:
                async with open_line_reader(sys.stdin.buffer) as reader:
                    await relay.stream(reader)
    except SlackPipeError as e:
        logger.error(
            "Fatal error",
            error=str(e),
            error_type=type(e).__name__,
            status_code=getattr(e, "status_code", None),
        )
        return 1

    return 0


def run() -> None:
    """Synchronous entry point for setuptools."""
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        sys.exit(130)
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
