"""Timeout helper shared by provider adapters and the graph store."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from blockgraph.utils.exceptions import OperationTimeoutError

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], timeout: float | None, operation: str) -> T:
    """
    Await ``awaitable`` for at most ``timeout`` seconds.

    Args:
        awaitable: Coroutine or future to await
        timeout: Budget in seconds; None or a non-positive value disables the limit
        operation: Operation name recorded on the raised error

    Returns:
        The awaited result

    Raises:
        OperationTimeoutError: If the budget is exceeded
    """
    if timeout is None or timeout <= 0:
        return await awaitable

    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except OperationTimeoutError:
        raise
    except asyncio.TimeoutError as e:
        raise OperationTimeoutError(
            f"{operation} timed out after {timeout}s",
            context={"operation": operation, "timeout": timeout},
        ) from e
