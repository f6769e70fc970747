"""Bounded worker pool for scraping candidate listings."""

import asyncio
from typing import Awaitable, Callable, Optional, Sequence

import structlog

from realtor_scraper.engines.crawl.rate_limiter import PacingPolicy
from realtor_scraper.engines.discovery.sources.base import CandidateLink
from realtor_scraper.engines.extract.base import ExtractedRecord
from realtor_scraper.engines.pipeline.models import PropertyResult
from realtor_scraper.errors import ExtractionTaskError

logger = structlog.get_logger()

PerTask = Callable[[CandidateLink], Awaitable[ExtractedRecord]]
OnResult = Callable[[PropertyResult], Awaitable[None]]


class BoundedWorkerPool:
    """
    Runs one task per link with at most ``concurrency`` in flight.

    A task that fails still produces a ``PropertyResult`` holding only the
    URL; nothing a task raises reaches the pool's caller. After each result
    the task runs ``on_result`` and then the politeness pause before its
    slot is released.
    """

    def __init__(self, concurrency: int = 1, pacing: Optional[PacingPolicy] = None):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.pacing = pacing or PacingPolicy.none()
        self._in_flight = 0
        self.max_in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def _execute(self, link: CandidateLink, per_task: PerTask) -> PropertyResult:
        try:
            record = await per_task(link)
        except ExtractionTaskError as e:
            logger.warning("Scrape task failed", url=link.url, error=str(e))
            return PropertyResult(url=link.url, error=str(e))
        except Exception as e:
            logger.warning("Scrape task error", url=link.url, error=str(e) or e.__class__.__name__)
            return PropertyResult(url=link.url, error=str(e) or e.__class__.__name__)

        return PropertyResult(url=link.url, record=record or ExtractedRecord())

    async def _run_one(
        self,
        link: CandidateLink,
        per_task: PerTask,
        on_result: Optional[OnResult],
        semaphore: asyncio.Semaphore,
        results: list[PropertyResult],
    ) -> None:
        async with semaphore:
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
            try:
                result = await self._execute(link, per_task)
                results.append(result)

                if on_result is not None:
                    try:
                        await on_result(result)
                    except Exception as e:
                        logger.error("Result handler error", url=link.url, error=str(e))

                await self.pacing.pause()
            finally:
                self._in_flight -= 1

    async def run(
        self,
        links: Sequence[CandidateLink],
        per_task: PerTask,
        on_result: Optional[OnResult] = None,
    ) -> list[PropertyResult]:
        """Run every task to completion; results are in completion order."""
        semaphore = asyncio.Semaphore(self.concurrency)
        results: list[PropertyResult] = []

        tasks = [
            self._run_one(link, per_task, on_result, semaphore, results)
            for link in links
        ]
        await asyncio.gather(*tasks)

        return results
