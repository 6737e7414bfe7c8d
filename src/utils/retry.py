"""
Retry utilities with exponential backoff for handling transient failures.

Failures are classified before each decision: fatal errors (rejected
credentials, malformed requests, unparseable responses) are re-raised at
once, everything else is retried on an exponential schedule that a
server-supplied retry-after hint can override for a single wait.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from src.exceptions.review_exceptions import ClassifiedError, ErrorKind, classify_error
from src.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 4
DEFAULT_INITIAL_DELAY_MS = 2000

SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass
class RetryState:
    """Bookkeeping for one retried call."""
    operation: str
    max_retries: int
    attempt: int = 0
    last_error: Optional[ClassifiedError] = None
    retry_eligible: bool = True
    delay_override_ms: Optional[int] = None

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1

    def record_failure(self, classified: ClassifiedError) -> None:
        self.last_error = classified
        self.retry_eligible = classified.is_retryable
        self.delay_override_ms = (
            classified.retry_after_ms if classified.kind == ErrorKind.RATE_LIMITED else None
        )


def next_delay(
    attempt: int,
    last_error: Optional[ClassifiedError],
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS,
) -> int:
    """
    Delay in milliseconds before the given attempt.

    Attempt 0 is the initial try and never waits. Retry n waits
    initial_delay_ms * 2^(n-1), unless the previous failure was rate
    limited with an explicit hint, in which case the hint is used instead.
    """
    if attempt <= 0:
        return 0
    if (
        last_error is not None
        and last_error.kind == ErrorKind.RATE_LIMITED
        and last_error.retry_after_ms is not None
    ):
        return last_error.retry_after_ms
    return initial_delay_ms * (2 ** (attempt - 1))


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    operation: Optional[str] = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS,
    sleep: Optional[SleepFunc] = None,
    **kwargs: Any,
) -> T:
    """
    Execute an async function with exponential backoff retry logic.

    Args:
        func: The async function to execute
        *args: Positional arguments to pass to the function
        operation: Name used in log lines (defaults to the function name)
        max_retries: Retries after the initial attempt (default: 4)
        initial_delay_ms: Delay before the first retry, doubled for each later one
        sleep: Coroutine used to wait, takes seconds (default: asyncio.sleep)
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The result of the function call

    Raises:
        The first fatal exception, or the last exception once retries are exhausted
    """
    if max_retries < 0:
        raise ValueError("max_retries must be >= 0")

    sleep = sleep or asyncio.sleep
    state = RetryState(
        operation=operation or getattr(func, "__name__", "operation"),
        max_retries=max_retries,
    )

    while True:
        delay_ms = next_delay(state.attempt, state.last_error, initial_delay_ms)
        if state.attempt > 0:
            logger.info(
                f"Retry attempt {state.attempt}/{max_retries} for {state.operation} after {delay_ms}ms"
            )
            if delay_ms > 0:
                await sleep(delay_ms / 1000)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            classified = classify_error(e)
            state.record_failure(classified)

            if not state.retry_eligible:
                logger.error(f"{state.operation} failed with non-retryable error: {e}")
                raise

            if state.attempt >= max_retries:
                logger.error(f"{state.operation} failed after {state.total_attempts} attempts: {e}")
                raise

            if state.delay_override_ms is not None:
                logger.warning(
                    f"{state.operation} rate limited. Retry after {state.delay_override_ms / 1000:g} seconds"
                )
            logger.warning(
                f"{state.operation} failed (attempt {state.attempt + 1}/{state.total_attempts}): {e}"
            )
            state.attempt += 1

