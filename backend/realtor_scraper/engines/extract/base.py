"""Base classes for listing extraction."""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Any, Iterable, Optional

from bs4 import BeautifulSoup

from realtor_scraper.engines.render.browser import DocumentSnapshot


@dataclass
class ExtractedRecord:
    """Listing fields pulled out of one detail page.

    Every field is optional; ``None`` means the field is absent.
    """

    mls: Optional[str] = None
    price: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    beds: Optional[str] = None
    baths: Optional[str] = None
    photo: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in self.field_names())

    def merge(self, other: "ExtractedRecord", overwrite: Iterable[str] = ()) -> None:
        """Fill absent fields from ``other``.

        Fields named in ``overwrite`` take ``other``'s value even when already set.
        """
        overwrite = set(overwrite)
        for name in self.field_names():
            value = getattr(other, name)
            if value is None:
                continue
            if getattr(self, name) is None or name in overwrite:
                setattr(self, name, value)

    def to_dict(self) -> dict[str, str]:
        """Present fields only."""
        return {
            name: getattr(self, name)
            for name in self.field_names()
            if getattr(self, name) is not None
        }


class ExtractionMethod(ABC):
    """One technique for pulling listing fields out of a rendered page."""

    # A non-empty result from an authoritative method is the whole record
    authoritative: bool = False

    # Fields this method may overwrite when an earlier method already set them
    overrides: tuple[str, ...] = ()

    @property
    @abstractmethod
    def method_name(self) -> str:
        """Unique identifier for this method."""
        pass

    @abstractmethod
    def extract(self, snapshot: DocumentSnapshot) -> Optional[ExtractedRecord]:
        """
        Extract listing fields from a document snapshot.

        Args:
            snapshot: Rendered page to query

        Returns:
            A partial record, or None when the method found nothing
        """
        pass

    def _clean_text(self, text: Optional[Any]) -> Optional[str]:
        """Clean and normalize text content."""
        if text is None:
            return None

        # Remove extra whitespace
        text = " ".join(str(text).split())

        return text if text else None

    def _extract_price(self, text: str) -> Optional[str]:
        """First dollar amount in text, e.g. ``$499,900``."""
        match = re.search(r"\$[\d,]+", text)
        return match.group(0) if match else None

    # -------------------------------------------------------------------------
    # JSON-LD Parsing Helpers
    # -------------------------------------------------------------------------

    def _json_ld_blocks(self, soup: BeautifulSoup) -> list[dict]:
        """
        Collect every JSON-LD object on the page.

        Looks for <script type="application/ld+json"> tags and flattens
        lists, ``@graph`` and ``mainEntity`` nesting.

        Args:
            soup: BeautifulSoup parsed HTML

        Returns:
            List of JSON-LD dictionaries in document order
        """
        blocks: list[dict] = []
        for script in soup.find_all("script", type="application/ld+json"):
            raw = script.string or script.get_text()
            if not raw:
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                # Trailing commas are the most common breakage
                try:
                    data = json.loads(re.sub(r",\s*([}\]])", r"\1", raw))
                except json.JSONDecodeError:
                    continue
            self._flatten_json_ld(data, blocks)
        return blocks

    def _flatten_json_ld(self, data: Any, blocks: list[dict]) -> None:
        if isinstance(data, list):
            for item in data:
                self._flatten_json_ld(item, blocks)
        elif isinstance(data, dict):
            blocks.append(data)
            for key in ["@graph", "mainEntity"]:
                if key in data:
                    self._flatten_json_ld(data[key], blocks)

    def _build_address_from_parts(self, address: Any) -> Optional[str]:
        """
        Build an address string from a schema.org PostalAddress.

        Handles a plain string or an object with
        streetAddress/addressLocality/addressRegion/postalCode.
        """
        if isinstance(address, str):
            return self._clean_text(address)
        if not isinstance(address, dict):
            return None

        parts = [
            address.get("streetAddress"),
            address.get("addressLocality"),
            address.get("addressRegion"),
            address.get("postalCode"),
        ]
        cleaned = [self._clean_text(p) for p in parts if p]
        return ", ".join(p for p in cleaned if p) or None
