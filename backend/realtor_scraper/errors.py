"""Exceptions raised across the scrape pipeline.

Only RequestValidationError and ConfigurationError ever reach the HTTP
caller. The rest are recovered where they are raised, except
FatalOrchestrationError which aborts the run and becomes an ``error`` event.
"""


class ScraperError(Exception):
    """Base class for pipeline errors."""


class RequestValidationError(ScraperError):
    """The search request cannot start a run."""


class ConfigurationError(ScraperError):
    """Required configuration (browserless credentials) is missing."""


class DiscoveryStrategyError(ScraperError):
    """A single discovery strategy could not produce links."""

    def __init__(self, strategy: str, message: str):
        self.strategy = strategy
        super().__init__(f"{strategy}: {message}")


class ExtractionTaskError(ScraperError):
    """Navigation or extraction failed for one candidate link."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"{url}: {message}")


class DeliveryError(ScraperError):
    """An outbound webhook POST failed."""


class FatalOrchestrationError(ScraperError):
    """The rendering session cannot be established."""
