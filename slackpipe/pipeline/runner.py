"""Runs producer and scheduler as two concurrent tasks."""

import asyncio

from typing import Optional

import structlog

from .producer import LineProducer
from .scheduler import BatchingScheduler

logger = structlog.get_logger()


async def run_pipeline(producer: LineProducer, scheduler: BatchingScheduler) -> None:
    """Run the pipeline until the input is drained or something fails.

    A failure in either task cancels the other and is re-raised here.
    """
    queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue(maxsize=1)

    producer_task = asyncio.create_task(producer.run(queue), name="producer")
    scheduler_task = asyncio.create_task(scheduler.run(queue), name="scheduler")
    tasks = [producer_task, scheduler_task]

    try:
        done, pending = await asyncio.wait(
            tasks, return_when=asyncio.FIRST_EXCEPTION
        )
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise

    # Cancel remaining tasks
    for task in pending:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    for task in done:
        error = task.exception()
        if error is not None:
            logger.error(
                "Pipeline task failed", task=task.get_name(), error=str(error)
            )
            raise error

    await scheduler.done.wait()
