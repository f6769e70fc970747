"""Request and response models for the scrape API."""

from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    """Search criteria posted to ``/scrape-webhook``.

    ``bathrooms``, ``sqftMin`` and ``sqftMax`` are accepted and carried along
    but no discovery strategy builds queries from them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    location: str = "Edmonton"
    bedrooms: Optional[int] = Field(default=2, ge=0)
    bathrooms: Optional[float] = Field(default=None, ge=0)
    sqft_min: Optional[float] = Field(default=None, ge=0, alias="sqftMin")
    sqft_max: Optional[float] = Field(default=None, ge=0, alias="sqftMax")
    budget: Optional[Union[int, float]] = Field(default=500000, ge=0)
    max_results: int = Field(default=10, gt=0, alias="maxResults")
    use_fallback: bool = Field(
        default=True,
        validation_alias=AliasChoices("useFallback", "useGoogleFallback", "use_fallback"),
    )
    webhook_url: Optional[str] = Field(default=None, alias="webhookUrl")
    province: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("province", "region"),
    )

    @property
    def has_webhook(self) -> bool:
        return bool(self.webhook_url and self.webhook_url.strip())


class ScrapeStartedResponse(BaseModel):
    """Acknowledgement returned before the run begins."""

    success: bool = True
    status: str = "started"
    message: str = "Scraping started in background"
    usingBrowserless: bool = True


class ScrapeErrorResponse(BaseModel):
    """Synchronous rejection of a scrape request."""

    success: bool = False
    error: str
