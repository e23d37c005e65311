"""Async retry logic with increasing backoff."""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from variant_scout.errors import ExhaustedRetries

T = TypeVar("T")

FailureHook = Callable[[Exception, int, bool], Awaitable[None]]


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before the attempt after ``attempt`` (1-based): base_delay * attempt."""
    return min(base_delay * attempt, max_delay)


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 4.0,
    max_delay: float = 60.0,
    on_failure: Optional[FailureHook] = None,
    give_up_on: tuple[type[Exception], ...] = (),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await func until it succeeds or the attempt budget is spent.

    Args:
        func: Coroutine function to execute
        max_attempts: Total number of attempts
        base_delay: Delay multiplier in seconds; attempt n waits base_delay * n
        max_delay: Maximum delay between attempts in seconds
        on_failure: Awaited after every failed attempt with
            (error, attempt number, whether it was the final attempt)
        give_up_on: Exception types re-raised immediately without retrying
        sleep: Sleep coroutine (injectable for tests)

    Returns:
        Result of the first successful call

    Raises:
        ExhaustedRetries: Wrapping the last error once all attempts failed
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_exception: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except give_up_on:
            raise
        except Exception as e:
            last_exception = e
            final = attempt == max_attempts
            logger.warning(f"Attempt {attempt}/{max_attempts} failed: {e}")

            if on_failure is not None:
                await on_failure(e, attempt, final)

            if final:
                logger.error(f"All {max_attempts} attempts failed: {e}")
                break

            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.info(f"Waiting {delay:.2f}s before retry...")
            await sleep(delay)

    raise ExhaustedRetries(last_exception, max_attempts) from last_exception
