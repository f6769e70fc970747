"""Pipeline Orchestrator - runs one scrape request end to end.

A run moves through:
1. Validating - the request must name a webhook
2. Discovering - the link discovery chain finds candidate listings
3. Extracting - the worker pool scrapes each candidate, posting a
   ``property`` event as each one finishes
4. Summarizing - the ``completed`` event closes the run

Any unrecoverable failure (the browser session cannot be opened, or an
unexpected exception) aborts the run with an ``error`` event.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

import structlog

from realtor_scraper.config import Settings, get_settings
from realtor_scraper.engines.crawl.rate_limiter import PacingPolicy
from realtor_scraper.engines.discovery.chain import LinkDiscoveryChain
from realtor_scraper.engines.discovery.sources.base import CandidateLink
from realtor_scraper.engines.extract.base import ExtractedRecord
from realtor_scraper.engines.extract.service import ExtractionStrategyChain
from realtor_scraper.engines.pipeline.emitter import WebhookEmitter
from realtor_scraper.engines.pipeline.models import (
    CompletedEvent,
    ErrorEvent,
    PropertyEvent,
    PropertyResult,
    StartedEvent,
)
from realtor_scraper.engines.pipeline.worker_pool import BoundedWorkerPool
from realtor_scraper.engines.render.browser import BrowserSession
from realtor_scraper.errors import (
    ConfigurationError,
    ExtractionTaskError,
    FatalOrchestrationError,
    RequestValidationError,
)
from realtor_scraper.schemas import SearchRequest

logger = structlog.get_logger()

NO_RESULTS_MESSAGE = "No properties found. Try different search criteria."


class PipelineState(str, Enum):
    """States of a single scrape run."""
    IDLE = "idle"
    VALIDATING = "validating"
    DISCOVERING = "discovering"
    EXTRACTING = "extracting"
    SUMMARIZING = "summarizing"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class RunContext:
    """Mutable state owned by one run."""
    request: SearchRequest
    state: PipelineState = PipelineState.IDLE
    total_candidates: int = 0
    completed: int = 0
    successful: int = 0
    error: Optional[str] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def transition(self, state: PipelineState) -> None:
        logger.debug("Pipeline state", previous=self.state.value, state=state.value)
        self.state = state

    def record(self, result: PropertyResult) -> int:
        """Count a finished task and return its 1-based completion index."""
        self.completed += 1
        if result.successful:
            self.successful += 1
        return self.completed

    def summary(self) -> "PipelineSummary":
        return PipelineSummary(
            state=self.state,
            total_candidates=self.total_candidates,
            total_scraped=self.completed,
            successful_scrapes=self.successful,
            error=self.error,
        )


@dataclass
class PipelineSummary:
    """Outcome of a finished run."""
    state: PipelineState
    total_candidates: int
    total_scraped: int
    successful_scrapes: int
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "total_candidates": self.total_candidates,
            "total_scraped": self.total_scraped,
            "successful_scrapes": self.successful_scrapes,
            "error": self.error,
        }


class PipelineOrchestrator:
    """
    Composes discovery, the worker pool and webhook delivery for a request.

    Collaborators are injectable; anything not supplied is built from
    settings.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session_factory: Optional[Callable[[], BrowserSession]] = None,
        discovery: Optional[LinkDiscoveryChain] = None,
        extraction: Optional[ExtractionStrategyChain] = None,
        emitter: Optional[WebhookEmitter] = None,
        pacing: Optional[PacingPolicy] = None,
    ):
        self.settings = settings or get_settings()
        self._session_factory = session_factory or (lambda: BrowserSession.from_settings(self.settings))
        self.discovery = discovery or LinkDiscoveryChain.from_settings(self.settings)
        self.extraction = extraction or ExtractionStrategyChain()
        self._emitter = emitter
        self.pacing = pacing or PacingPolicy(
            self.settings.politeness_min_seconds,
            self.settings.politeness_jitter_seconds,
        )

    def validate(self, request: SearchRequest) -> None:
        """Reject requests that cannot start a run."""
        if not request.has_webhook:
            raise RequestValidationError("webhookUrl required")

    def ensure_configured(self) -> None:
        """Reject runs when browserless is not configured."""
        if not self.settings.browserless_configured:
            raise ConfigurationError("BROWSERLESS_TOKEN not configured")

    async def _scrape_listing(self, session: BrowserSession, link: CandidateLink) -> ExtractedRecord:
        """Render one listing in its own context and extract it."""
        logger.info("Scraping listing", url=link.url)
        result = await session.render(link.url)
        if not result.success or result.snapshot is None:
            raise ExtractionTaskError(link.url, result.error or "render failed")
        return self.extraction.extract(result.snapshot)

    async def _close_session(self, session: BrowserSession) -> None:
        try:
            await session.stop()
        except Exception as e:
            logger.warning("Browser disconnect failed", error=str(e))

    async def _execute(self, ctx: RunContext, emitter: WebhookEmitter) -> None:
        request = ctx.request
        webhook_url = request.webhook_url
        session = self._session_factory()

        try:
            try:
                await session.start()
            except Exception as e:
                raise FatalOrchestrationError(f"Could not connect to browser: {e}") from e

            ctx.transition(PipelineState.DISCOVERING)
            links = await self.discovery.discover(session, request)
            ctx.total_candidates = len(links)

            ctx.transition(PipelineState.EXTRACTING)
            await emitter.emit(webhook_url, StartedEvent(
                location=request.location,
                bedrooms=request.bedrooms,
                budget=request.budget,
                total_candidates=len(links),
            ))

            if not links:
                ctx.transition(PipelineState.SUMMARIZING)
                await emitter.emit(webhook_url, CompletedEvent(
                    total_scraped=0,
                    successful_scrapes=0,
                    message=NO_RESULTS_MESSAGE,
                ))
                ctx.transition(PipelineState.DONE)
                return

            # One property POST at a time, so indexes reach the webhook in order
            emit_lock = asyncio.Lock()

            async def on_result(result: PropertyResult) -> None:
                async with emit_lock:
                    index = ctx.record(result)
                    await emitter.emit(webhook_url, PropertyEvent(
                        index=index,
                        total=len(links),
                        result=result,
                    ))

            pool = BoundedWorkerPool(self.settings.concurrency, self.pacing)
            await pool.run(links, lambda link: self._scrape_listing(session, link), on_result)

            ctx.transition(PipelineState.SUMMARIZING)
            await emitter.emit(webhook_url, CompletedEvent(
                total_scraped=ctx.completed,
                successful_scrapes=ctx.successful,
            ))
            ctx.transition(PipelineState.DONE)

        except Exception as e:
            ctx.error = str(e) or e.__class__.__name__
            ctx.transition(PipelineState.ABORTED)
            logger.error("Scrape error", error=ctx.error)

        finally:
            await self._close_session(session)

        if ctx.state == PipelineState.ABORTED:
            await emitter.emit(webhook_url, ErrorEvent(message=ctx.error))

    async def run(self, request: SearchRequest) -> PipelineSummary:
        """Run a request to DONE or ABORTED.

        Raises RequestValidationError before any work (and without any
        event) when the request has no webhook.
        """
        ctx = RunContext(request=request)
        ctx.transition(PipelineState.VALIDATING)
        try:
            self.validate(request)
        except RequestValidationError as e:
            ctx.error = str(e)
            ctx.transition(PipelineState.ABORTED)
            raise

        emitter = self._emitter or WebhookEmitter(timeout=self.settings.webhook_timeout_seconds)
        try:
            await self._execute(ctx, emitter)
        finally:
            if self._emitter is None:
                await emitter.close()

        logger.info(
            "Scrape run finished",
            state=ctx.state.value,
            location=request.location,
            total_candidates=ctx.total_candidates,
            total_scraped=ctx.completed,
            successful=ctx.successful,
        )
        return ctx.summary()


async def run_scrape(request: SearchRequest) -> PipelineSummary:
    """Run a scrape request with default collaborators (for background task)."""
    orchestrator = PipelineOrchestrator()
    return await orchestrator.run(request)
