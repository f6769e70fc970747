"""Discovery Engine - finds listing pages to scrape.

This module provides:
- LinkDiscoveryChain: ordered fallback over discovery strategies
- Discovery strategies: Google, Bing, DuckDuckGo, realtor.ca map page
"""

from realtor_scraper.engines.discovery.chain import LinkDiscoveryChain, dedupe_links
from realtor_scraper.engines.discovery.sources import (
    CandidateLink,
    DiscoveryStrategy,
    SearchEngineStrategy,
    GoogleSearchStrategy,
    BingSearchStrategy,
    DuckDuckGoSearchStrategy,
    RealtorListingStrategy,
)

__all__ = [
    # Core
    "LinkDiscoveryChain",
    "dedupe_links",
    # Strategy base classes
    "CandidateLink",
    "DiscoveryStrategy",
    "SearchEngineStrategy",
    # Strategy implementations
    "GoogleSearchStrategy",
    "BingSearchStrategy",
    "DuckDuckGoSearchStrategy",
    "RealtorListingStrategy",
]
