"""Shared fixtures: a fake browser session, a recording emitter, settings."""

import asyncio
from typing import Optional, Union

import pytest

from realtor_scraper.config import Settings
from realtor_scraper.engines.render.browser import DocumentSnapshot, RenderResult


class FakeBrowserSession:
    """Stands in for BrowserSession; serves canned HTML per URL prefix.

    A page value may be an HTML string, an Exception (render fails with its
    message) or None (render fails with "timeout").
    """

    def __init__(
        self,
        pages: Optional[dict[str, Union[str, Exception, None]]] = None,
        fail_start: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.pages = pages or {}
        self.fail_start = fail_start
        self.delay = delay
        self.rendered: list[str] = []
        self.started = 0
        self.stopped = 0
        self.open_pages = 0
        self.max_open_pages = 0

    async def start(self):
        if self.fail_start:
            raise self.fail_start
        self.started += 1

    async def stop(self):
        self.stopped += 1

    def _lookup(self, url: str):
        if url in self.pages:
            return self.pages[url]
        for prefix, page in self.pages.items():
            if url.startswith(prefix):
                return page
        return "<html><head><title></title></head><body></body></html>"

    async def render(self, url: str, wait_until: str = "domcontentloaded", settle=None) -> RenderResult:
        self.rendered.append(url)
        self.open_pages += 1
        self.max_open_pages = max(self.max_open_pages, self.open_pages)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            page = self._lookup(url)
            if page is None:
                return RenderResult(success=False, error="timeout")
            if isinstance(page, Exception):
                return RenderResult(success=False, error=str(page))
            return RenderResult(success=True, snapshot=DocumentSnapshot(url=url, html=page))
        finally:
            self.open_pages -= 1


class RecordingEmitter:
    """Collects events instead of posting them."""

    def __init__(self):
        self.events = []
        self.urls = []

    async def emit(self, webhook_url, event) -> bool:
        self.urls.append(webhook_url)
        self.events.append(event)
        return True

    async def close(self):
        pass

    @property
    def payloads(self) -> list[dict]:
        return [e.to_payload() for e in self.events]

    @property
    def kinds(self) -> list[str]:
        return [e.event for e in self.events]


def search_results_html(*hrefs: str) -> str:
    """A search-engine results page linking to the given hrefs."""
    anchors = "\n".join(f'<a href="{href}">result</a>' for href in hrefs)
    return f"<html><head><title>Results</title></head><body>{anchors}</body></html>"


@pytest.fixture
def settings():
    return Settings(
        browserless_token="test-token",
        concurrency=2,
        nav_timeout=1000,
        politeness_min_seconds=0,
        politeness_jitter_seconds=0,
        settle_min_seconds=0,
        settle_jitter_seconds=0,
        search_settle_min_seconds=0,
        search_settle_jitter_seconds=0,
        listing_settle_min_seconds=0,
        listing_settle_jitter_seconds=0,
    )


@pytest.fixture
def emitter():
    return RecordingEmitter()
