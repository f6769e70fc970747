"""Bing search discovery strategy."""

from realtor_scraper.engines.discovery.sources.base import SearchEngineStrategy


class BingSearchStrategy(SearchEngineStrategy):
    """Find realtor.ca listings through a Bing site: query.

    Bing wraps result links in ``/ck/a`` redirects; they are unwrapped by
    the shared link parser.
    """

    search_url = "https://www.bing.com/search?q={query}&count=30"

    @property
    def strategy_name(self) -> str:
        return "bing"
