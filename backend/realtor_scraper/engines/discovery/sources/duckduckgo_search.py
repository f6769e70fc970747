"""DuckDuckGo HTML search discovery strategy."""

from realtor_scraper.engines.discovery.sources.base import SearchEngineStrategy


class DuckDuckGoSearchStrategy(SearchEngineStrategy):
    """Find realtor.ca listings through the DuckDuckGo HTML endpoint."""

    search_url = "https://html.duckduckgo.com/html/?q={query}"

    @property
    def strategy_name(self) -> str:
        return "duckduckgo"
