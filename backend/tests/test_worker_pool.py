"""Tests for BoundedWorkerPool and PacingPolicy."""

import asyncio

import pytest

from realtor_scraper.engines.crawl.rate_limiter import PacingPolicy
from realtor_scraper.engines.discovery import CandidateLink
from realtor_scraper.engines.extract import ExtractedRecord
from realtor_scraper.engines.pipeline import BoundedWorkerPool
from realtor_scraper.errors import ExtractionTaskError


def links(*names):
    return [CandidateLink(url=f"https://www.realtor.ca/real-estate/{n}/x", strategy="google") for n in names]


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class TestPacingPolicy:
    def test_delay_within_bounds(self):
        policy = PacingPolicy(2.0, 2.0)
        for _ in range(50):
            assert 2.0 <= policy.next_delay() <= 4.0

    @pytest.mark.asyncio
    async def test_pause_uses_injected_sleep_and_random(self):
        sleep = RecordingSleep()
        policy = PacingPolicy(1.5, 1.5, sleep=sleep, rand=lambda low, high: high)

        delay = await policy.pause()

        assert delay == 3.0
        assert sleep.delays == [3.0]

    @pytest.mark.asyncio
    async def test_none_never_sleeps(self):
        sleep = RecordingSleep()
        policy = PacingPolicy(0, 0, sleep=sleep)

        assert await policy.pause() == 0
        assert sleep.delays == []

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            PacingPolicy(-1, 0)


class TestBoundedWorkerPool:
    def test_concurrency_must_be_positive(self):
        with pytest.raises(ValueError):
            BoundedWorkerPool(concurrency=0)

    @pytest.mark.asyncio
    async def test_in_flight_never_exceeds_concurrency(self):
        pool = BoundedWorkerPool(concurrency=2)

        async def task(link):
            await asyncio.sleep(0.01)
            return ExtractedRecord(title=link.url)

        results = await pool.run(links(1, 2, 3, 4, 5), task)

        assert len(results) == 5
        assert pool.max_in_flight == 2
        assert pool.in_flight == 0

    @pytest.mark.asyncio
    async def test_sequential_when_concurrency_is_one(self):
        pool = BoundedWorkerPool(concurrency=1)

        async def task(link):
            await asyncio.sleep(0)
            return ExtractedRecord(title="t")

        await pool.run(links(1, 2, 3), task)

        assert pool.max_in_flight == 1

    @pytest.mark.asyncio
    async def test_failed_task_yields_url_only_result(self):
        pool = BoundedWorkerPool(concurrency=3)
        bad = links(2)[0].url

        async def task(link):
            if link.url == bad:
                raise ExtractionTaskError(link.url, "timeout")
            if link.url.endswith("/3/x"):
                raise KeyError("selector")
            return ExtractedRecord(price="$1")

        results = await pool.run(links(1, 2, 3), task)
        by_url = {r.url: r for r in results}

        assert len(results) == 3
        assert by_url[bad].error.endswith("timeout")
        assert by_url[bad].record.is_empty()
        assert by_url[bad].to_dict().keys() == {"url", "scrapedAt"}
        assert by_url[links(3)[0].url].error
        assert by_url[links(1)[0].url].successful

    @pytest.mark.asyncio
    async def test_results_in_completion_order(self):
        pool = BoundedWorkerPool(concurrency=2)
        slow, fast = links("slow", "fast")

        async def task(link):
            await asyncio.sleep(0.05 if link is slow else 0)
            return ExtractedRecord(title=link.url)

        results = await pool.run([slow, fast], task)

        assert [r.url for r in results] == [fast.url, slow.url]

    @pytest.mark.asyncio
    async def test_on_result_called_per_task_and_errors_contained(self):
        pool = BoundedWorkerPool(concurrency=2)
        seen = []

        async def task(link):
            return ExtractedRecord(title="t")

        async def on_result(result):
            seen.append(result.url)
            if len(seen) == 1:
                raise RuntimeError("handler broke")

        results = await pool.run(links(1, 2, 3), task, on_result)

        assert len(results) == 3
        assert sorted(seen) == sorted(r.url for r in results)

    @pytest.mark.asyncio
    async def test_pacing_after_each_task(self):
        sleep = RecordingSleep()
        pool = BoundedWorkerPool(concurrency=1, pacing=PacingPolicy(2.0, 2.0, sleep=sleep, rand=lambda a, b: 1.0))

        async def task(link):
            return ExtractedRecord(title="t")

        await pool.run(links(1, 2, 3), task)

        assert sleep.delays == [3.0, 3.0, 3.0]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        pool = BoundedWorkerPool(concurrency=2)

        async def task(link):
            raise AssertionError("never called")

        assert await pool.run([], task) == []
