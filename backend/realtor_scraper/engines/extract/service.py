"""Extraction Engine - turns a rendered listing page into an ExtractedRecord."""

from typing import Optional, Sequence

import structlog

from realtor_scraper.engines.extract.base import ExtractedRecord, ExtractionMethod
from realtor_scraper.engines.extract.document_title import DocumentTitleMethod
from realtor_scraper.engines.extract.embedded_state import EmbeddedStateMethod
from realtor_scraper.engines.extract.json_ld import JsonLdMethod
from realtor_scraper.engines.extract.meta_tags import MetaTagMethod
from realtor_scraper.engines.render.browser import DocumentSnapshot

logger = structlog.get_logger()


class ExtractionStrategyChain:
    """Runs extraction methods in precedence order and merges their output.

    Default order: embedded state (exclusive when it yields anything),
    JSON-LD, meta tags, document title. Later methods only fill fields that
    are still absent, except for the fields a method lists in ``overrides``.
    """

    def __init__(self, methods: Optional[Sequence[ExtractionMethod]] = None):
        self.methods = list(methods) if methods is not None else [
            EmbeddedStateMethod(),
            JsonLdMethod(),
            MetaTagMethod(),
            DocumentTitleMethod(),
        ]

    def _run_method(
        self,
        method: ExtractionMethod,
        snapshot: DocumentSnapshot,
    ) -> Optional[ExtractedRecord]:
        try:
            return method.extract(snapshot)
        except Exception as e:
            logger.debug(
                "Extraction method failed",
                method=method.method_name,
                url=snapshot.url,
                error=str(e),
            )
            return None

    def extract(self, snapshot: DocumentSnapshot) -> ExtractedRecord:
        """Best-effort record for a page; never raises."""
        record = ExtractedRecord()

        for method in self.methods:
            partial = self._run_method(method, snapshot)
            if partial is None or partial.is_empty():
                continue

            if method.authoritative:
                logger.debug("Authoritative extraction", method=method.method_name, url=snapshot.url)
                return partial

            record.merge(partial, overwrite=method.overrides)

        return record
