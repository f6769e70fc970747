"""Extractor for the ``window.__PRELOADED_STATE__`` blob on realtor.ca pages."""

import json
import re
from typing import Any, Optional

from realtor_scraper.engines.extract.base import ExtractedRecord, ExtractionMethod
from realtor_scraper.engines.render.browser import DocumentSnapshot

STATE_MARKER = "__PRELOADED_STATE__"

# The assignment, not a bare reference such as `if (window.__PRELOADED_STATE__)`
STATE_ASSIGNMENT_RE = re.compile(STATE_MARKER + r"\s*=\s*")


def extract_balanced_object(text: str, start: int = 0) -> Optional[str]:
    """Return the first balanced ``{...}`` at or after ``start``.

    Braces inside JSON string literals (including escaped quotes) are ignored.
    """
    begin = text.find("{", start)
    if begin == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(begin, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[begin:i + 1]

    return None


def _dig(data: Any, *path: Any) -> Any:
    """Follow dict keys / list indexes, returning None on any miss."""
    for key in path:
        if isinstance(key, int):
            if not isinstance(data, list) or len(data) <= key:
                return None
        elif not isinstance(data, dict):
            return None
        data = data[key] if isinstance(key, int) else data.get(key)
        if data is None:
            return None
    return data


class EmbeddedStateMethod(ExtractionMethod):
    """Parse the app state realtor.ca inlines into its detail pages."""

    authoritative = True

    @property
    def method_name(self) -> str:
        return "embedded_state"

    def extract(self, snapshot: DocumentSnapshot) -> Optional[ExtractedRecord]:
        for script in snapshot.soup.find_all("script"):
            text = script.string or script.get_text() or ""
            assignment = STATE_ASSIGNMENT_RE.search(text)
            if assignment is None or not text.startswith("{", assignment.end()):
                continue

            blob = extract_balanced_object(text, assignment.end())
            if blob is None:
                continue

            try:
                state = json.loads(blob)
            except json.JSONDecodeError:
                continue

            return self._map_state(state)

        return None

    def _map_state(self, state: Any) -> ExtractedRecord:
        if not isinstance(state, dict):
            return ExtractedRecord()

        listing = state.get("propertyDetails") or state.get("Property") or state

        return ExtractedRecord(
            mls=self._clean_text(_dig(listing, "MlsNumber")),
            price=self._clean_text(_dig(listing, "Property", "Price")),
            address=self._clean_text(_dig(listing, "Property", "Address", "AddressText")),
            city=self._clean_text(_dig(listing, "Property", "Address", "City")),
            beds=self._clean_text(_dig(listing, "Building", "Bedrooms")),
            baths=self._clean_text(_dig(listing, "Building", "BathroomTotal")),
            photo=self._clean_text(_dig(listing, "Property", "Photo", 0, "HighResPath")),
        )
