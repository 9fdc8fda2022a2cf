"""Retry logic for upstream requests."""

import asyncio
from typing import Any, Callable, Coroutine, Optional, TypeVar

from . import log

T = TypeVar("T")


def backoff_delay(attempt: int, backoff_s: float, backoff_factor: float) -> float:
    """Seconds to wait after the given failed attempt (1-based).

    With the default factor of 2 the waits are backoff_s, 2*backoff_s,
    4*backoff_s, ...
    """
    return backoff_s * (backoff_factor ** (attempt - 1))


async def with_retries(
    fn: Callable[[], Coroutine[Any, Any, T]],
    attempts: int = 4,
    backoff_s: float = 1.0,
    backoff_factor: float = 2.0,
    name: str = "operation",
) -> tuple[bool, Optional[T], Optional[Exception]]:
    """
    Execute async function with retries and exponential backoff.

    Args:
        fn: Async function to call
        attempts: Max number of attempts (first call included)
        backoff_s: Seconds to wait before the first retry
        backoff_factor: Multiplier applied to the wait after every retry
        name: Name for logging

    Returns:
        (success, result, last_exception)
    """
    last_exception: Optional[Exception] = None
    attempts = max(1, attempts)

    for attempt in range(1, attempts + 1):
        try:
            result = await fn()
            if attempt > 1:
                log.info(f"{name}: succeeded on attempt {attempt}/{attempts}")
            return (True, result, None)
        except Exception as e:
            last_exception = e
            log.info(f"{name}: attempt {attempt}/{attempts} failed: {e}")
            if attempt < attempts:
                delay = backoff_delay(attempt, backoff_s, backoff_factor)
                log.debug(f"{name}: retrying in {delay}s...")
                await asyncio.sleep(delay)

    return (False, None, last_exception)
