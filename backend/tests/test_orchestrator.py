"""
Tests for the pipeline orchestrator.

Runs whole scrape requests against a fake browser session and a recording
emitter, checking the webhook event sequence for each outcome.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from realtor_scraper.engines.pipeline import PipelineOrchestrator, PipelineState
from realtor_scraper.engines.pipeline.orchestrator import NO_RESULTS_MESSAGE
from realtor_scraper.errors import ConfigurationError, RequestValidationError
from realtor_scraper.schemas import SearchRequest

from tests.conftest import FakeBrowserSession, RecordingEmitter, search_results_html

HOOK = "https://hooks.example.test/scrape"
LISTING_A = "https://www.realtor.ca/real-estate/111/aaa-street-edmonton"
LISTING_B = "https://www.realtor.ca/real-estate/222/bbb-avenue-edmonton"
LISTING_C = "https://www.realtor.ca/real-estate/333/ccc-road-edmonton"

LISTING_PAGE = (
    "<html><head><title>Listing | REALTOR.ca</title>"
    '<meta property="og:title" content="{address} - $475,000 | REALTOR.ca">'
    '<meta property="og:description" content="2 bedrooms, 1 bathroom condo">'
    "</head><body></body></html>"
)
EMPTY_PAGE = "<html><head><title></title></head><body></body></html>"


def listing_page(address):
    return LISTING_PAGE.format(address=address)


def make_orchestrator(settings, emitter, session, **kwargs):
    return PipelineOrchestrator(
        settings=settings,
        session_factory=lambda: session,
        emitter=emitter,
        **kwargs,
    )


def edmonton(**overrides):
    data = {"location": "Edmonton", "bedrooms": 2, "budget": 500000, "webhookUrl": HOOK}
    data.update(overrides)
    return SearchRequest.model_validate(data)


class SlowFirstEmitter(RecordingEmitter):
    """The first property POST is slow; events are recorded on arrival."""

    def __init__(self):
        super().__init__()
        self.posting = 0
        self.max_posting = 0
        self._slowed = False

    async def emit(self, webhook_url, event):
        self.posting += 1
        self.max_posting = max(self.max_posting, self.posting)
        try:
            if event.event == "property" and not self._slowed:
                self._slowed = True
                await asyncio.sleep(0.05)
            return await super().emit(webhook_url, event)
        finally:
            self.posting -= 1


class TestValidation:
    @pytest.mark.asyncio
    async def test_missing_webhook_raises_without_events(self, settings, emitter):
        created = []
        orchestrator = PipelineOrchestrator(
            settings=settings,
            session_factory=lambda: created.append(1) or FakeBrowserSession(),
            emitter=emitter,
        )

        with pytest.raises(RequestValidationError, match="webhookUrl required"):
            await orchestrator.run(SearchRequest())

        assert emitter.events == []
        assert created == []

    def test_missing_token_refused(self, settings, emitter):
        unconfigured = settings.model_copy(update={"browserless_token": ""})
        orchestrator = make_orchestrator(unconfigured, emitter, FakeBrowserSession())

        with pytest.raises(ConfigurationError, match="BROWSERLESS_TOKEN not configured"):
            orchestrator.ensure_configured()


class TestRunOutcomes:
    @pytest.mark.asyncio
    async def test_no_candidates_emits_started_then_completed(self, settings, emitter):
        session = FakeBrowserSession()
        orchestrator = make_orchestrator(settings, emitter, session)

        summary = await orchestrator.run(edmonton())

        assert emitter.kinds == ["started", "completed"]
        started, completed = emitter.payloads
        assert started["totalCandidates"] == 0
        assert started["location"] == "Edmonton"
        assert completed["totalScraped"] == 0
        assert completed["successfulScrapes"] == 0
        assert completed["message"] == NO_RESULTS_MESSAGE
        assert summary.state == PipelineState.DONE
        assert (session.started, session.stopped) == (1, 1)
        assert set(emitter.urls) == {HOOK}

    @pytest.mark.asyncio
    async def test_edmonton_end_to_end(self, settings, emitter):
        session = FakeBrowserSession(pages={
            "https://www.google.com/": search_results_html(
                f"/url?q={LISTING_A}&sa=U",
                f"{LISTING_A}?utm_source=google",
                LISTING_B,
                "https://www.realtor.ca/agent/1/someone",
            ),
            LISTING_A: listing_page("123 Main St"),
            LISTING_B: EMPTY_PAGE,
        })
        orchestrator = make_orchestrator(settings, emitter, session)

        summary = await orchestrator.run(edmonton())

        assert emitter.kinds == ["started", "property", "property", "completed"]
        started, first, second, completed = emitter.payloads
        assert started["totalCandidates"] == 2
        assert started["bedrooms"] == 2
        assert started["budget"] == 500000

        properties = [first, second]
        assert sorted(p["index"] for p in properties) == [1, 2]
        assert all(p["total"] == 2 for p in properties)
        by_url = {p["property"]["url"]: p["property"] for p in properties}
        assert set(by_url) == {LISTING_A, LISTING_B}
        assert by_url[LISTING_A]["price"] == "$475,000"
        assert by_url[LISTING_A]["beds"] == "2"
        assert "scrapedAt" in by_url[LISTING_B]

        assert completed["totalScraped"] == 2
        assert completed["successfulScrapes"] == 1
        assert "message" not in completed

        assert summary.state == PipelineState.DONE
        assert summary.total_scraped == 2
        assert summary.successful_scrapes == 1
        assert session.stopped == 1

    @pytest.mark.asyncio
    async def test_failed_listing_still_reported(self, settings, emitter):
        session = FakeBrowserSession(pages={
            "https://www.google.com/": search_results_html(LISTING_A, LISTING_B, LISTING_C),
            LISTING_A: listing_page("1 First St"),
            LISTING_B: TimeoutError("Navigation timeout of 1000 ms exceeded"),
            LISTING_C: listing_page("3 Third St"),
        })
        orchestrator = make_orchestrator(settings, emitter, session)

        await orchestrator.run(edmonton())

        properties = [p["property"] for p in emitter.payloads if p["event"] == "property"]
        assert len(properties) == 3
        failed = next(p for p in properties if p["url"] == LISTING_B)
        assert set(failed) == {"url", "scrapedAt"}
        assert emitter.payloads[-1]["totalScraped"] == 3
        assert emitter.payloads[-1]["successfulScrapes"] == 2

    @pytest.mark.asyncio
    async def test_max_results_caps_candidates(self, settings, emitter):
        session = FakeBrowserSession(pages={
            "https://www.google.com/": search_results_html(LISTING_A, LISTING_B, LISTING_C),
        })
        orchestrator = make_orchestrator(settings, emitter, session)

        await orchestrator.run(edmonton(maxResults=1))

        assert emitter.kinds == ["started", "property", "completed"]
        assert emitter.payloads[0]["totalCandidates"] == 1

    @pytest.mark.asyncio
    async def test_concurrency_bounds_open_pages(self, settings, emitter):
        urls = [f"https://www.realtor.ca/real-estate/{n}/listing-{n}" for n in range(100, 106)]
        pages = {"https://www.google.com/": search_results_html(*urls)}
        pages.update({url: listing_page(url) for url in urls})
        session = FakeBrowserSession(pages=pages, delay=0.01)
        orchestrator = make_orchestrator(settings, emitter, session)

        await orchestrator.run(edmonton())

        assert session.max_open_pages == settings.concurrency
        assert emitter.kinds.count("property") == 6

    @pytest.mark.asyncio
    async def test_property_events_between_started_and_completed(self, settings, emitter):
        session = FakeBrowserSession(pages={
            "https://www.google.com/": search_results_html(LISTING_A, LISTING_B, LISTING_C),
        })
        orchestrator = make_orchestrator(settings, emitter, session)

        await orchestrator.run(edmonton())

        kinds = emitter.kinds
        assert kinds[0] == "started"
        assert kinds[-1] == "completed"
        assert set(kinds[1:-1]) == {"property"}
        assert [p["index"] for p in emitter.payloads[1:-1]] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_property_indexes_arrive_in_order_under_concurrency(self, settings):
        emitter = SlowFirstEmitter()
        session = FakeBrowserSession(pages={
            "https://www.google.com/": search_results_html(LISTING_A, LISTING_B, LISTING_C),
        })
        orchestrator = make_orchestrator(settings, emitter, session)

        await orchestrator.run(edmonton())

        assert settings.concurrency > 1
        assert [p["index"] for p in emitter.payloads if p["event"] == "property"] == [1, 2, 3]
        assert emitter.max_posting == 1


class TestAbort:
    @pytest.mark.asyncio
    async def test_session_start_failure_emits_only_error(self, settings, emitter):
        session = FakeBrowserSession(fail_start=ConnectionError("browserless refused connection"))
        orchestrator = make_orchestrator(settings, emitter, session)

        summary = await orchestrator.run(edmonton())

        assert emitter.kinds == ["error"]
        assert "browserless refused connection" in emitter.payloads[0]["message"]
        assert summary.state == PipelineState.ABORTED
        assert session.rendered == []

    @pytest.mark.asyncio
    async def test_unexpected_failure_aborts_after_releasing_session(self, settings, emitter):
        session = FakeBrowserSession()
        discovery = MagicMock()
        discovery.discover = AsyncMock(side_effect=RuntimeError("discovery exploded"))
        orchestrator = make_orchestrator(settings, emitter, session, discovery=discovery)

        summary = await orchestrator.run(edmonton())

        assert emitter.kinds == ["error"]
        assert emitter.payloads[0]["message"] == "discovery exploded"
        assert session.stopped == 1
        assert summary.state == PipelineState.ABORTED
        assert summary.error == "discovery exploded"
