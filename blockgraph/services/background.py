"""
Fire-and-forget task runner for link recomputation and telemetry.

Tasks run detached from the request that scheduled them. Their failures are
logged with the operation name, the entity they concern and a timestamp,
and never reach the caller.
"""

import asyncio
from collections.abc import Awaitable
from datetime import datetime

from blockgraph.utils.logger import get_logger

logger = get_logger(__name__)


class BackgroundTaskRunner:
    """
    Runs coroutines as detached asyncio tasks.

    Strong references are kept until each task finishes, so scheduled work
    is not garbage collected mid-flight.

    Usage:
        runner = BackgroundTaskRunner()
        runner.submit("trace_block_links", engine.trace_block_links(block_id, owner),
                      block_id=block_id)
        await runner.drain()
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()
        self.failures = 0

    @property
    def pending(self) -> int:
        """Number of tasks not finished yet."""
        return len(self._tasks)

    def submit(
        self, name: str, operation: Awaitable, delay: float = 0, **context
    ) -> asyncio.Task:
        """
        Schedule ``operation`` in the background.

        Args:
            name: Operation name used in logs
            operation: Coroutine to run
            delay: Seconds to wait before starting
            **context: Structured context logged with failures (e.g. block_id)

        Returns:
            The created task
        """
        task = asyncio.create_task(self._guard(name, operation, delay, context), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, name: str, operation: Awaitable, delay: float, context: dict):
        try:
            if delay > 0:
                await asyncio.sleep(delay)
            return await operation
        except asyncio.CancelledError:
            logger.debug("Background task cancelled", extra={"operation": name, **context})
            raise
        except Exception as e:
            self.failures += 1
            logger.error(
                "Background task failed",
                extra={
                    "operation": name,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "timestamp": datetime.now().isoformat(),
                    **context,
                },
            )
            return None
        finally:
            # Close coroutines that never started (cancelled during the delay).
            close = getattr(operation, "close", None)
            if close is not None and getattr(operation, "cr_frame", None) is not None:
                close()

    async def drain(self) -> None:
        """Wait until every scheduled task, including ones scheduled meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding tasks and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Background tasks stopped", extra={"cancelled": len(tasks)})
