"""Playwright browser session for rendering pages through browserless."""

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup
from playwright.async_api import async_playwright, Browser, BrowserContext, Page

from realtor_scraper.config import Settings
from realtor_scraper.engines.crawl.rate_limiter import PacingPolicy

logger = structlog.get_logger()

DEFAULT_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Referer": "https://www.google.com/",
}


@dataclass
class DocumentSnapshot:
    """Queryable copy of a rendered page."""

    url: str
    html: str
    _soup: Optional[BeautifulSoup] = field(default=None, init=False, repr=False, compare=False)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html, "lxml")
        return self._soup

    @property
    def title(self) -> Optional[str]:
        tag = self.soup.find("title")
        if not tag:
            return None
        text = " ".join(tag.get_text().split())
        return text or None

    def select(self, selector: str) -> list:
        return self.soup.select(selector)

    def anchor_hrefs(self) -> list[str]:
        """Absolute hrefs of every anchor, in document order."""
        hrefs = []
        for anchor in self.soup.select("a[href]"):
            href = (anchor.get("href") or "").strip()
            if not href or href.startswith(("#", "javascript:", "mailto:")):
                continue
            hrefs.append(urljoin(self.url, href))
        return hrefs


@dataclass
class RenderResult:
    """Result of rendering a page."""

    success: bool
    snapshot: Optional[DocumentSnapshot] = None
    error: Optional[str] = None
    render_time_ms: int = 0


class BrowserSession:
    """Shared connection to a remote Chrome.

    The connection handle is shared by every caller; each ``render`` call
    opens its own browser context and page and closes both before returning.
    """

    def __init__(
        self,
        ws_url: str,
        user_agent: str,
        timeout_ms: int = 45000,
        settle: Optional[PacingPolicy] = None,
    ):
        self.ws_url = ws_url
        self.user_agent = user_agent
        self.timeout_ms = timeout_ms
        self.settle = settle or PacingPolicy.none()
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._started = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "BrowserSession":
        return cls(
            ws_url=settings.browserless_ws_url,
            user_agent=settings.user_agent,
            timeout_ms=settings.nav_timeout,
            settle=PacingPolicy(settings.settle_min_seconds, settings.settle_jitter_seconds),
        )

    async def start(self):
        """Connect to the remote browser."""
        if self._started:
            return

        logger.info("Connecting to browserless")
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.connect_over_cdp(
                self.ws_url,
                timeout=self.timeout_ms,
            )
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        self._started = True
        logger.info("Browser session connected")

    async def stop(self):
        """Disconnect from the remote browser."""
        if not self._started:
            return

        logger.info("Disconnecting browser session")
        try:
            if self._browser:
                await self._browser.close()
        finally:
            if self._playwright:
                await self._playwright.stop()
            self._browser = None
            self._playwright = None
            self._started = False

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
        return False

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Open an isolated context and page, closed on every exit path."""
        if not self._started:
            await self.start()

        context: Optional[BrowserContext] = None
        page: Optional[Page] = None
        try:
            context = await self._browser.new_context(
                user_agent=self.user_agent,
                viewport={"width": 1920, "height": 1080},
                extra_http_headers=DEFAULT_HEADERS,
            )
            page = await context.new_page()
            page.set_default_timeout(self.timeout_ms)
            yield page
        finally:
            if page and not page.is_closed():
                await page.close()
            if context:
                await context.close()

    async def render(
        self,
        url: str,
        wait_until: str = "domcontentloaded",
        settle: Optional[PacingPolicy] = None,
    ) -> RenderResult:
        """Navigate to a page and return a snapshot of its HTML."""
        start_time = time.monotonic()
        settle = settle or self.settle

        try:
            async with self.page() as page:
                await page.goto(url, wait_until=wait_until, timeout=self.timeout_ms)

                # Let client-side scripts populate the page
                await settle.pause()

                html = await page.content()
                final_url = page.url or url

            return RenderResult(
                success=True,
                snapshot=DocumentSnapshot(url=final_url, html=html),
                render_time_ms=int((time.monotonic() - start_time) * 1000),
            )

        except Exception as e:
            logger.warning("Render error", url=url, error=str(e))
            return RenderResult(
                success=False,
                error=str(e) or e.__class__.__name__,
                render_time_ms=int((time.monotonic() - start_time) * 1000),
            )
