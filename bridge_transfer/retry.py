"""
Bounded Retry

Polls an eventually-consistent remote source until it has an answer:
- Probe returns a value -> done
- Probe returns NOT_READY -> wait and try again
- Probe raises -> propagate immediately (hard errors are never retried)
- Deadline passed -> RetryTimeoutError
"""

import asyncio
import time
from typing import Any, Awaitable, Callable

from loguru import logger

from .errors import RetryTimeoutError


class _NotReady:
    """Sentinel returned by a probe whose answer is not available yet"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "NOT_READY"

    def __bool__(self):
        return False


NOT_READY = _NotReady()


def is_ready(value: Any) -> bool:
    return value is not NOT_READY


async def retry(
    probe: Callable[[], Awaitable[Any]],
    interval: float,
    timeout: float,
    label: str = "retry"
) -> Any:
    """
    Invoke `probe` until it produces a result or the deadline passes

    Args:
        probe: Zero-argument coroutine function returning a result or NOT_READY
        interval: Delay between attempts (seconds)
        timeout: Overall deadline (seconds)
        label: Name of the wait, used in logs and in the timeout error

    Returns:
        First result that is not NOT_READY

    Raises:
        RetryTimeoutError: Deadline passed without a result
        Exception: Anything the probe raises, unchanged
    """
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")
    if timeout < 0:
        raise ValueError(f"timeout must be non-negative, got {timeout}")

    start = time.monotonic()
    attempt = 0

    while True:
        attempt += 1
        result = await probe()

        if result is not NOT_READY:
            if attempt > 1:
                logger.debug(f"{label}: ready after {attempt} attempts")
            return result

        elapsed = time.monotonic() - start
        if elapsed >= timeout:
            logger.warning(f"{label}: not ready after {attempt} attempts ({elapsed:.1f}s)")
            raise RetryTimeoutError(label, elapsed)

        logger.debug(f"{label}: not ready (attempt {attempt}), retrying in {interval}s")
        await asyncio.sleep(min(interval, timeout - elapsed))
