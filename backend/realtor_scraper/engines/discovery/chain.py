"""Link discovery chain - finds candidate listing URLs for a search.

The chain:
1. Tries each strategy in priority order (search engines first, the
   realtor.ca map page last)
2. Stops at the first strategy that yields any link, never merging
3. Treats a failing strategy as one that found nothing
4. Deduplicates (first-seen order) and caps at ``maxResults``
"""

from typing import Optional, Sequence

import structlog

from realtor_scraper.config import Settings
from realtor_scraper.engines.crawl.rate_limiter import PacingPolicy
from realtor_scraper.engines.discovery.sources import (
    BingSearchStrategy,
    CandidateLink,
    DiscoveryStrategy,
    DuckDuckGoSearchStrategy,
    GoogleSearchStrategy,
    RealtorListingStrategy,
)
from realtor_scraper.engines.render.browser import BrowserSession
from realtor_scraper.errors import DiscoveryStrategyError
from realtor_scraper.schemas import SearchRequest

logger = structlog.get_logger()


def dedupe_links(links: Sequence[CandidateLink], limit: Optional[int] = None) -> list[CandidateLink]:
    """Drop repeated URLs keeping the first occurrence, then truncate."""
    seen: set[str] = set()
    out: list[CandidateLink] = []
    for link in links:
        if link.url in seen:
            continue
        seen.add(link.url)
        out.append(link)
    return out[:limit] if limit is not None else out


class LinkDiscoveryChain:
    """Runs discovery strategies until one finds listing links."""

    def __init__(self, strategies: Sequence[DiscoveryStrategy]):
        if not strategies:
            raise ValueError("At least one discovery strategy is required")
        self.strategies = list(strategies)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LinkDiscoveryChain":
        """Default order: Google, Bing, DuckDuckGo, realtor.ca map."""
        search_settle = PacingPolicy(
            settings.search_settle_min_seconds,
            settings.search_settle_jitter_seconds,
        )
        return cls([
            GoogleSearchStrategy(settle=search_settle),
            BingSearchStrategy(settle=search_settle),
            DuckDuckGoSearchStrategy(settle=search_settle),
            RealtorListingStrategy(
                bounds=settings.listing_bounds,
                settle=PacingPolicy(
                    settings.listing_settle_min_seconds,
                    settings.listing_settle_jitter_seconds,
                ),
            ),
        ])

    async def _run_strategy(
        self,
        strategy: DiscoveryStrategy,
        session: BrowserSession,
        request: SearchRequest,
    ) -> list[CandidateLink]:
        try:
            urls = await strategy.discover(session, request)
        except DiscoveryStrategyError as e:
            logger.warning("Discovery strategy failed", strategy=strategy.strategy_name, error=str(e))
            return []
        except Exception as e:
            logger.warning(
                "Discovery strategy error",
                strategy=strategy.strategy_name,
                error=str(e),
            )
            return []

        return [CandidateLink(url=url, strategy=strategy.strategy_name) for url in urls]

    async def discover(self, session: BrowserSession, request: SearchRequest) -> list[CandidateLink]:
        """Candidate links for a request, deduplicated and capped at max_results."""
        strategies = self.strategies if request.use_fallback else self.strategies[:1]

        for strategy in strategies:
            links = await self._run_strategy(strategy, session, request)
            logger.info(
                "Discovery strategy finished",
                strategy=strategy.strategy_name,
                found=len(links),
            )
            if links:
                final = dedupe_links(links, request.max_results)
                logger.info("Final candidate links", strategy=strategy.strategy_name, count=len(final))
                return final

        logger.info("No candidate links found", location=request.location)
        return []
