"""Discovery strategies for finding listing links."""

from realtor_scraper.engines.discovery.sources.base import (
    CandidateLink,
    DiscoveryStrategy,
    SearchEngineStrategy,
    build_search_query,
    listing_links,
    strip_tracking,
    unwrap_redirect,
)
from realtor_scraper.engines.discovery.sources.google_search import GoogleSearchStrategy
from realtor_scraper.engines.discovery.sources.bing_search import BingSearchStrategy
from realtor_scraper.engines.discovery.sources.duckduckgo_search import DuckDuckGoSearchStrategy
from realtor_scraper.engines.discovery.sources.realtor_listing import RealtorListingStrategy

__all__ = [
    # Base classes
    "CandidateLink",
    "DiscoveryStrategy",
    "SearchEngineStrategy",
    # Helpers
    "build_search_query",
    "listing_links",
    "strip_tracking",
    "unwrap_redirect",
    # Strategies
    "GoogleSearchStrategy",
    "BingSearchStrategy",
    "DuckDuckGoSearchStrategy",
    "RealtorListingStrategy",
]
