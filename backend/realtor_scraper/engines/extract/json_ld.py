"""Extractor for schema.org JSON-LD listing data."""

from typing import Any, Optional

import structlog

from realtor_scraper.engines.extract.base import ExtractedRecord, ExtractionMethod
from realtor_scraper.engines.render.browser import DocumentSnapshot

logger = structlog.get_logger()

LISTING_TYPES = {
    "RealEstateListing",
    "Residence",
    "SingleFamilyResidence",
    "House",
    "Apartment",
    "Accommodation",
    "Product",
    "Offer",
}


class JsonLdMethod(ExtractionMethod):
    """Price and address from a JSON-LD offer/address block."""

    @property
    def method_name(self) -> str:
        return "json_ld"

    def extract(self, snapshot: DocumentSnapshot) -> Optional[ExtractedRecord]:
        blocks = self._json_ld_blocks(snapshot.soup)
        block = self._pick_block(blocks)
        if block is None:
            return None

        return ExtractedRecord(
            price=self._parse_price(block.get("offers")),
            address=self._parse_address(block),
        )

    def _pick_block(self, blocks: list[dict]) -> Optional[dict]:
        """Prefer listing-like types, else the first block with offers or an address."""
        for block in blocks:
            types = block.get("@type")
            types = set(types) if isinstance(types, list) else {types}
            if types & LISTING_TYPES:
                return block
        for block in blocks:
            if "offers" in block or "address" in block:
                return block
        return None

    def _parse_price(self, offers: Any) -> Optional[str]:
        if isinstance(offers, list):
            offers = offers[0] if offers else None
        if not isinstance(offers, dict):
            return None

        price = offers.get("price")
        if price is None and isinstance(offers.get("priceSpecification"), dict):
            price = offers["priceSpecification"].get("price")
        if price is None:
            return None

        if isinstance(price, (int, float)):
            return f"${price:,.0f}"
        text = self._clean_text(price)
        if text and text.replace(",", "").replace(".", "", 1).isdigit():
            return f"${float(text.replace(',', '')):,.0f}"
        return text

    def _parse_address(self, block: dict) -> Optional[str]:
        for holder in (block, block.get("itemOffered"), block.get("about")):
            if isinstance(holder, dict) and holder.get("address"):
                address = self._build_address_from_parts(holder["address"])
                if address:
                    return address
        return None
