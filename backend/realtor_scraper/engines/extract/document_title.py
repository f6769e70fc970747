"""Last-resort extractor: the document <title>."""

from typing import Optional

from realtor_scraper.engines.extract.base import ExtractedRecord, ExtractionMethod
from realtor_scraper.engines.render.browser import DocumentSnapshot


class DocumentTitleMethod(ExtractionMethod):
    @property
    def method_name(self) -> str:
        return "document_title"

    def extract(self, snapshot: DocumentSnapshot) -> Optional[ExtractedRecord]:
        title = snapshot.title
        return ExtractedRecord(title=title) if title else None
