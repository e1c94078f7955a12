"""Bounded polling helpers built on tenacity.

Controller-side deployment completes asynchronously. Instead of sleeping a
fixed amount of time after a deploy trigger, callers poll a status check
at a fixed interval until it reports the expected value or a deadline
passes.
"""
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def poll_until(
    check: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    interval: float = 5,
    timeout: float = 120,
) -> tuple[bool, T]:
    """Call ``check`` until ``predicate(result)`` holds or ``timeout`` expires.

    Exceptions raised by ``check`` propagate immediately; only an
    unsatisfied predicate is polled again.

    Args:
        check: Coroutine function returning the observed value
        predicate: Returns True when the observed value is final
        interval: Seconds between attempts
        timeout: Overall deadline in seconds

    Returns:
        Tuple of (satisfied, last observed value)
    """
    retrying = AsyncRetrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_result(lambda value: not predicate(value)),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
    )
    try:
        result = await retrying(check)
    except RetryError as e:
        return False, e.last_attempt.result()
    return True, result
