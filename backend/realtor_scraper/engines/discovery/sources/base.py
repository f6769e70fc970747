"""Base class and models for discovery strategies."""

import base64
import binascii
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, quote_plus, unquote, urlparse, urlunparse

import structlog

from realtor_scraper.engines.crawl.rate_limiter import PacingPolicy
from realtor_scraper.engines.render.browser import BrowserSession, DocumentSnapshot
from realtor_scraper.errors import DiscoveryStrategyError
from realtor_scraper.schemas import SearchRequest

logger = structlog.get_logger()

# Detail pages look like https://www.realtor.ca/real-estate/26512345/...
LISTING_URL_RE = re.compile(r"^https?://(?:www\.)?realtor\.ca/real-estate/", re.I)

# Raw links kept per strategy before chain-level dedup and capping
MAX_RAW_LINKS = 50


@dataclass(frozen=True)
class CandidateLink:
    """A listing URL and the strategy that found it."""

    url: str
    strategy: str


def strip_tracking(url: str) -> str:
    """Drop query string and fragment."""
    parsed = urlparse(url)
    return urlunparse((parsed.scheme, parsed.netloc, parsed.path, "", "", ""))


def unwrap_redirect(href: str) -> str:
    """Resolve search-engine redirect links to their target URL.

    Handles Google ``/url?q=``, DuckDuckGo ``/l/?uddg=`` and Bing
    ``/ck/a?u=a1<base64>`` wrappers; anything else is returned unchanged.
    """
    try:
        parsed = urlparse(href)
    except ValueError:
        return href

    host = parsed.netloc.lower()
    qs = parse_qs(parsed.query)

    if "google." in host and parsed.path == "/url":
        for key in ("q", "url"):
            if qs.get(key):
                return unquote(qs[key][0])

    if host.endswith("duckduckgo.com") and parsed.path.startswith("/l/"):
        if qs.get("uddg"):
            return unquote(qs["uddg"][0])

    if host.endswith("bing.com") and parsed.path.startswith("/ck/"):
        encoded = (qs.get("u") or [""])[0]
        if encoded.startswith("a1"):
            payload = encoded[2:]
            payload += "=" * (-len(payload) % 4)
            try:
                return base64.urlsafe_b64decode(payload).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError, ValueError):
                return href

    return href


def listing_links(snapshot: DocumentSnapshot, limit: int = MAX_RAW_LINKS) -> list[str]:
    """Listing detail URLs found in a page's anchors, tracking stripped."""
    urls: list[str] = []
    for href in snapshot.anchor_hrefs():
        target = unwrap_redirect(href)
        if not LISTING_URL_RE.match(target):
            continue
        urls.append(strip_tracking(target))
        if len(urls) >= limit:
            break
    return urls


def build_search_query(request: SearchRequest) -> str:
    """``site:realtor.ca "<location>" <n> bedroom $<budget>``"""
    place = request.location.strip()
    if request.province:
        place = f"{place}, {request.province.strip()}"

    parts = [f'site:realtor.ca "{place}"']
    if request.bedrooms:
        parts.append(f"{request.bedrooms} bedroom")
    if request.budget:
        budget = request.budget
        if isinstance(budget, float) and budget.is_integer():
            budget = int(budget)
        parts.append(f"${budget}")
    return " ".join(parts)


class DiscoveryStrategy(ABC):
    """Abstract base class for discovery strategies.

    A strategy turns a search request into raw listing URLs by rendering one
    page. Failures are raised as DiscoveryStrategyError; the chain treats
    them as an empty result.
    """

    # Page load condition passed to the renderer
    wait_until: str = "domcontentloaded"

    def __init__(self, settle: Optional[PacingPolicy] = None):
        self.settle = settle

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """Unique identifier for this strategy."""
        pass

    @abstractmethod
    def build_url(self, request: SearchRequest) -> str:
        """URL of the page this strategy loads."""
        pass

    def parse_links(self, snapshot: DocumentSnapshot) -> list[str]:
        """Pull raw listing URLs out of the rendered page."""
        return listing_links(snapshot)

    async def discover(self, session: BrowserSession, request: SearchRequest) -> list[str]:
        """Render this strategy's page and return raw listing URLs."""
        url = self.build_url(request)
        logger.info("Running discovery strategy", strategy=self.strategy_name, url=url)

        result = await session.render(url, wait_until=self.wait_until, settle=self.settle)
        if not result.success or result.snapshot is None:
            raise DiscoveryStrategyError(self.strategy_name, result.error or "render failed")

        return self.parse_links(result.snapshot)


class SearchEngineStrategy(DiscoveryStrategy):
    """Strategy that runs the site-restricted query on a search engine."""

    search_url: str = ""

    def build_url(self, request: SearchRequest) -> str:
        return self.search_url.format(query=quote_plus(build_search_query(request)))
