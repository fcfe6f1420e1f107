"""Streaming delivery pipeline."""

from .batch import PendingBatch
from .producer import FileLineReader, LineProducer, LineReader, open_line_reader
from .runner import run_pipeline
from .scheduler import END_OF_STREAM, BatchingScheduler, SchedulerState

__all__ = [
    "BatchingScheduler",
    "END_OF_STREAM",
    "FileLineReader",
    "LineProducer",
    "LineReader",
    "PendingBatch",
    "SchedulerState",
    "open_line_reader",
    "run_pipeline",
]
