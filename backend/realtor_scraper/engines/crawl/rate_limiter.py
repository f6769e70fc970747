"""Pacing delays for polite crawling."""

import asyncio
import random
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger()


class PacingPolicy:
    """
    Randomized pause of ``min_delay + uniform(0, jitter)`` seconds.

    Used for the politeness delay after each scraped listing and for the
    settle time after a navigation. Both the sleep and the random source
    are injectable so tests run without real waiting.
    """

    def __init__(
        self,
        min_delay: float = 0.0,
        jitter: float = 0.0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        rand: Optional[Callable[[float, float], float]] = None,
    ):
        if min_delay < 0 or jitter < 0:
            raise ValueError("Pacing delays must be non-negative")
        self.min_delay = min_delay
        self.jitter = jitter
        self._sleep = sleep or asyncio.sleep
        self._rand = rand or random.uniform

    @classmethod
    def none(cls) -> "PacingPolicy":
        """Policy that never waits."""
        return cls(0.0, 0.0)

    def next_delay(self) -> float:
        """Seconds the next pause will last."""
        if self.jitter == 0:
            return self.min_delay
        return self.min_delay + self._rand(0.0, self.jitter)

    async def pause(self) -> float:
        """Sleep for the next delay and return it."""
        delay = self.next_delay()
        if delay > 0:
            logger.debug("Pacing", delay=f"{delay:.2f}s")
            await self._sleep(delay)
        return delay
