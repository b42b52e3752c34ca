import asyncio
import time

from loguru import logger


class RateLimiter:
    """
    Enforce a minimum interval between consecutive provider calls.

    The first call never waits. Every call records its completion time, and the
    next call sleeps until `min_delay_seconds` have passed since then.
    """

    def __init__(self, min_delay_seconds: float = 2.0):
        self.min_delay_seconds = min_delay_seconds
        self._last_call = None

    async def wait(self) -> None:
        if self._last_call is not None:
            elapsed = time.monotonic() - self._last_call
            remaining = self.min_delay_seconds - elapsed
            if remaining > 0:
                logger.debug(f"Rate limiter sleeping {remaining:.2f}s")
                await asyncio.sleep(remaining)
        self._last_call = time.monotonic()
