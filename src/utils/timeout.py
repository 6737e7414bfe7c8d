"""
Deadline enforcement for single remote calls.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from src.exceptions.review_exceptions import InferenceTimeoutException
from src.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def call_with_deadline(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    timeout_ms: int,
    operation: str = "Request",
    **kwargs: Any,
) -> T:
    """
    Await func(*args, **kwargs), cancelling it if it outlives timeout_ms.

    The deadline is armed on entry and disarmed on every exit path, so a
    completed or failed call never leaves a pending cancellation behind.

    Raises:
        InferenceTimeoutException: If the call did not finish in time
    """
    deadline = asyncio.timeout(timeout_ms / 1000)
    try:
        async with deadline:
            return await func(*args, **kwargs)
    except TimeoutError as e:
        if not deadline.expired():
            raise
        logger.error(f"{operation} timed out after {timeout_ms}ms")
        raise InferenceTimeoutException(timeout_ms=timeout_ms, operation=operation) from e
