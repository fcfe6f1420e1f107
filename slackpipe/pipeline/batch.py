"""Pending batch accumulated between flushes."""

from dataclasses import dataclass, field
from typing import List

from slackpipe.throttle import RateWindow


@dataclass
class PendingBatch:
    """Lines received since the last flush."""

    window: RateWindow
    size: int = 0
    _parts: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def is_empty(self) -> bool:
        return self.size == 0

    def would_overflow(self, line: str, size_limit: int) -> bool:
        """Whether appending ``line`` would take the batch past the limit."""
        return self.size + len(line) > size_limit

    def append(self, line: str) -> None:
        self._parts.append(line)
        self.size += len(line)

    def reset(self) -> None:
        """Empty the batch and start a new rate window."""
        self._parts.clear()
        self.size = 0
        self.window.restart()
