"""Results and webhook events produced by a scrape run."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional, Union

from realtor_scraper.engines.extract.base import ExtractedRecord


def utc_timestamp() -> str:
    """ISO 8601 UTC with millisecond precision, e.g. 2025-01-01T00:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class PropertyResult:
    """One scraped candidate: its URL plus whatever fields were extracted."""

    url: str
    record: ExtractedRecord = field(default_factory=ExtractedRecord)
    scraped_at: str = field(default_factory=utc_timestamp)
    error: Optional[str] = None

    @property
    def successful(self) -> bool:
        """Rendered without error and at least one field was extracted."""
        return self.error is None and not self.record.is_empty()

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, **self.record.to_dict(), "scrapedAt": self.scraped_at}


class PipelineEvent(ABC):
    """Event posted to the caller's webhook."""

    event: ClassVar[str]

    @abstractmethod
    def to_payload(self) -> dict[str, Any]:
        pass


@dataclass
class StartedEvent(PipelineEvent):
    event: ClassVar[str] = "started"

    location: str
    bedrooms: Optional[int]
    budget: Optional[Union[int, float]]
    total_candidates: int
    timestamp: str = field(default_factory=utc_timestamp)

    def to_payload(self) -> dict[str, Any]:
        return {
            "event": self.event,
            "location": self.location,
            "bedrooms": self.bedrooms,
            "budget": self.budget,
            "totalCandidates": self.total_candidates,
            "timestamp": self.timestamp,
        }


@dataclass
class PropertyEvent(PipelineEvent):
    event: ClassVar[str] = "property"

    index: int
    total: int
    result: PropertyResult

    def to_payload(self) -> dict[str, Any]:
        return {
            "event": self.event,
            "index": self.index,
            "total": self.total,
            "property": self.result.to_dict(),
        }


@dataclass
class CompletedEvent(PipelineEvent):
    event: ClassVar[str] = "completed"

    total_scraped: int
    successful_scrapes: int
    message: Optional[str] = None
    timestamp: str = field(default_factory=utc_timestamp)

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "event": self.event,
            "totalScraped": self.total_scraped,
            "successfulScrapes": self.successful_scrapes,
            "timestamp": self.timestamp,
        }
        if self.message:
            payload["message"] = self.message
        return payload


@dataclass
class ErrorEvent(PipelineEvent):
    event: ClassVar[str] = "error"

    message: str
    timestamp: str = field(default_factory=utc_timestamp)

    def to_payload(self) -> dict[str, Any]:
        return {
            "event": self.event,
            "message": self.message,
            "timestamp": self.timestamp,
        }
