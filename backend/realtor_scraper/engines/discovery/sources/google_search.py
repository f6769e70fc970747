"""Google search discovery strategy - primary source of listing links."""

from realtor_scraper.engines.discovery.sources.base import SearchEngineStrategy


class GoogleSearchStrategy(SearchEngineStrategy):
    """Find realtor.ca listings through a Google site: query."""

    search_url = "https://www.google.com/search?q={query}&num=20"

    @property
    def strategy_name(self) -> str:
        return "google"
