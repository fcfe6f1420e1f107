"""Line producer: reads the input stream and hands lines to the scheduler."""

import asyncio
import os

from contextlib import asynccontextmanager
from typing import AsyncIterator, BinaryIO, Callable, Optional, Protocol, TextIO

import structlog

from slackpipe.exceptions import InputStreamError
from slackpipe.utils.text import strip_escape_sequences

from .scheduler import END_OF_STREAM

logger = structlog.get_logger()

# Longest input line accepted from a pipe.
READ_LIMIT = 16 * 1024 * 1024


class LineReader(Protocol):
    """Anything with an awaitable ``readline`` returning ``b""`` at EOF."""

    async def readline(self) -> bytes:
        ...


class FileLineReader:
    """Line reader over a regular file, which the event loop cannot watch."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    async def readline(self) -> bytes:
        return await asyncio.to_thread(self.stream.readline)


@asynccontextmanager
async def open_line_reader(stream: BinaryIO) -> AsyncIterator[LineReader]:
    """Wrap a binary stream (normally ``sys.stdin.buffer``) for async reads.

    Pipes and terminals are attached to the event loop through a duplicate
    descriptor; regular files are read in a worker thread. On exit the
    stream's original blocking mode is restored, since a terminal's mode is
    shared with the parent shell.
    """
    loop = asyncio.get_running_loop()

    try:
        fd = stream.fileno()
        was_blocking = os.get_blocking(fd)
    except (AttributeError, OSError, ValueError):
        fd = None

    transport = None
    if fd is not None:
        reader = asyncio.StreamReader(limit=READ_LIMIT)
        protocol = asyncio.StreamReaderProtocol(reader)
        pipe = os.fdopen(os.dup(fd), "rb", buffering=0)
        try:
            transport, _ = await loop.connect_read_pipe(lambda: protocol, pipe)
        except (ValueError, OSError):
            pipe.close()

    if transport is None:
        logger.debug("Input is not a pipe, reading it as a file")
        yield FileLineReader(stream)
        return

    try:
        yield reader
    finally:
        os.set_blocking(fd, was_blocking)
        transport.close()


class LineProducer:
    """Reads newline-delimited input and forwards cleaned lines in order."""

    def __init__(
        self,
        reader: LineReader,
        cleaner: Callable[[str], str] = strip_escape_sequences,
        echo: Optional[TextIO] = None,
        encoding: str = "utf-8",
    ):
        """Initialize the producer.

        Args:
            reader: Source of raw input lines
            cleaner: Applied to every line before it is forwarded
            echo: When given, every forwarded line is also written here
            encoding: Input encoding; undecodable bytes are replaced
        """
        self.reader = reader
        self.cleaner = cleaner
        self.echo = echo
        self.encoding = encoding
        self.lines = 0

    async def _read_line(self) -> bytes:
        try:
            return await self.reader.readline()
        except (OSError, ValueError) as e:
            raise InputStreamError(f"Error reading: {e}") from e

    async def run(self, queue: "asyncio.Queue[Optional[str]]") -> None:
        """Forward every input line, then signal end of stream.

        Each ``put`` is followed by ``queue.join()`` so the producer does not
        read further until the scheduler has taken the line.
        """
        while True:
            raw = await self._read_line()
            if not raw:
                break

            text = raw.decode(self.encoding, errors="replace").rstrip("\r\n")
            line = self.cleaner(text) + "\n"

            if self.echo is not None:
                self.echo.write(line)
                self.echo.flush()

            await queue.put(line)
            await queue.join()
            self.lines += 1

        logger.info("Input closed", lines=self.lines)
        await queue.put(END_OF_STREAM)
