"""Extraction Engine - extracts listing data from rendered pages."""

from realtor_scraper.engines.extract.service import ExtractionStrategyChain
from realtor_scraper.engines.extract.base import ExtractionMethod, ExtractedRecord

from realtor_scraper.engines.extract.embedded_state import EmbeddedStateMethod
from realtor_scraper.engines.extract.json_ld import JsonLdMethod
from realtor_scraper.engines.extract.meta_tags import MetaTagMethod
from realtor_scraper.engines.extract.document_title import DocumentTitleMethod

__all__ = [
    "ExtractionStrategyChain",
    "ExtractionMethod",
    "ExtractedRecord",
    # Methods, in precedence order
    "EmbeddedStateMethod",
    "JsonLdMethod",
    "MetaTagMethod",
    "DocumentTitleMethod",
]
