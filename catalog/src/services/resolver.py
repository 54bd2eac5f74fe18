"""
Concurrent fan-out of independent document store reads.

Routes describe the reads a page needs as a mapping from name to a
zero-argument coroutine function; ``resolve`` runs them together on the
event loop and returns their results under the same names.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import structlog

from shared.metrics import get_catalog_metrics

logger = structlog.get_logger(__name__)

ReadTask = Callable[[], Awaitable[Any]]


async def resolve(tasks: Mapping[str, ReadTask]) -> Dict[str, Any]:
    """
    Run independent reads concurrently and join their results.

    Every task runs to completion before this returns or raises; no
    partial result is ever handed back and nothing is cancelled.

    Args:
        tasks: Mapping of task name to zero-argument coroutine function

    Returns:
        Mapping of task name to result, keyed exactly like ``tasks``

    Raises:
        Exception: The first error raised by a task, in completion order.
            Results of the other tasks are discarded.
    """
    metrics = get_catalog_metrics()
    started = time.perf_counter()

    futures = {name: asyncio.ensure_future(task()) for name, task in tasks.items()}
    names = {future: name for name, future in futures.items()}

    first_error: Optional[BaseException] = None
    failed_task: Optional[str] = None

    pending = set(futures.values())
    while pending:
        done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
        for future in done:
            error = future.exception()
            if error is not None and first_error is None:
                first_error = error
                failed_task = names[future]

    metrics.fanout_duration.observe(time.perf_counter() - started)

    if first_error is not None:
        metrics.fanout_failures.labels(task=failed_task).inc()
        logger.warning("fanout_failed", task=failed_task, tasks=list(tasks), error=str(first_error))
        raise first_error

    return {name: future.result() for name, future in futures.items()}
