"""Extractor for Open Graph / Twitter / description meta tags."""

import re
from typing import Optional

from bs4 import BeautifulSoup

from realtor_scraper.engines.extract.base import ExtractedRecord, ExtractionMethod
from realtor_scraper.engines.render.browser import DocumentSnapshot

BEDS_RE = re.compile(r"(\d+)\s*(?:\+\s*\d+\s*)?(?:bed(?:room)?s?|bdrms?|br)\b", re.I)
BATHS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:bath(?:room)?s?|ba)\b", re.I)


class MetaTagMethod(ExtractionMethod):
    """Title, description and image from social meta tags.

    Price is read from a dollar amount in the title and replaces a JSON-LD
    price; bed and bath counts come from the description.
    """

    overrides = ("price",)

    @property
    def method_name(self) -> str:
        return "meta_tags"

    def extract(self, snapshot: DocumentSnapshot) -> Optional[ExtractedRecord]:
        soup = snapshot.soup
        title = self._meta(soup, "og:title", "twitter:title")
        description = self._meta(soup, "og:description", "twitter:description", "description")
        image = self._meta(soup, "og:image", "twitter:image")

        record = ExtractedRecord(title=title, description=description, image=image)

        if title:
            record.price = self._extract_price(title)

        if description:
            beds = BEDS_RE.search(description)
            baths = BATHS_RE.search(description)
            record.beds = beds.group(1) if beds else None
            record.baths = baths.group(1) if baths else None

        return record

    def _meta(self, soup: BeautifulSoup, *keys: str) -> Optional[str]:
        """Content of the first matching ``property=`` or ``name=`` meta tag."""
        for key in keys:
            tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
            if tag:
                content = self._clean_text(tag.get("content"))
                if content:
                    return content
        return None
