"""Direct realtor.ca map page - last-resort discovery strategy.

This strategy ignores ``bedrooms`` and ``budget``: it loads the unfiltered
residential-for-sale map for a fixed bounding box and collects whatever
listing links the page renders.
"""

from typing import Optional
from urllib.parse import quote

from realtor_scraper.engines.crawl.rate_limiter import PacingPolicy
from realtor_scraper.engines.discovery.sources.base import DiscoveryStrategy
from realtor_scraper.schemas import SearchRequest

# lat_min, lng_min, lat_max, lng_max around Edmonton
DEFAULT_BOUNDS = (53.4, -113.7, 53.7, -113.3)


class RealtorListingStrategy(DiscoveryStrategy):
    """Load realtor.ca's own map listing page."""

    MAP_URL = (
        "https://www.realtor.ca/map#ZoomLevel=13&Center={center}"
        "&LatitudeMax={lat_max}&LongitudeMax={lng_max}"
        "&LatitudeMin={lat_min}&LongitudeMin={lng_min}"
        "&Sort=6-D&PropertyTypeGroupID=1&PropertySearchTypeId=1"
        "&TransactionTypeId=2&Currency=CAD"
    )

    # The map populates through XHR after load
    wait_until = "networkidle"

    def __init__(
        self,
        bounds: tuple[float, float, float, float] = DEFAULT_BOUNDS,
        settle: Optional[PacingPolicy] = None,
    ):
        super().__init__(settle=settle or PacingPolicy(3.0, 0.0))
        self.bounds = bounds

    @property
    def strategy_name(self) -> str:
        return "realtor_listing"

    def build_url(self, request: SearchRequest) -> str:
        place = request.location.strip()
        if request.province:
            place = f"{place}, {request.province.strip()}"
        lat_min, lng_min, lat_max, lng_max = self.bounds
        return self.MAP_URL.format(
            center=quote(f"{place}, Canada", safe=""),
            lat_min=lat_min,
            lng_min=lng_min,
            lat_max=lat_max,
            lng_max=lng_max,
        )
