"""Scrape trigger endpoint."""

from typing import Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse

from realtor_scraper.config import get_settings
from realtor_scraper.engines.pipeline.orchestrator import PipelineOrchestrator
from realtor_scraper.errors import ConfigurationError, RequestValidationError
from realtor_scraper.schemas import ScrapeErrorResponse, ScrapeStartedResponse, SearchRequest

router = APIRouter()
logger = structlog.get_logger()


def get_orchestrator() -> PipelineOrchestrator:
    """Orchestrator built from application settings."""
    return PipelineOrchestrator(settings=get_settings())


@router.post(
    "/scrape-webhook",
    response_model=ScrapeStartedResponse,
    responses={400: {"model": ScrapeErrorResponse}, 500: {"model": ScrapeErrorResponse}},
)
async def scrape_webhook(
    background_tasks: BackgroundTasks,
    search: Optional[SearchRequest] = None,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Validate a search and start scraping in the background.

    Progress and results are posted to ``webhookUrl``; this endpoint only
    reports whether the run could start.
    """
    search = search or SearchRequest()

    try:
        orchestrator.validate(search)
    except RequestValidationError as e:
        return JSONResponse(status_code=400, content=ScrapeErrorResponse(error=str(e)).model_dump())

    try:
        orchestrator.ensure_configured()
    except ConfigurationError as e:
        logger.error("Scrape refused", error=str(e))
        return JSONResponse(status_code=500, content=ScrapeErrorResponse(error=str(e)).model_dump())

    background_tasks.add_task(orchestrator.run, search)
    logger.info(
        "Scrape triggered",
        location=search.location,
        bedrooms=search.bedrooms,
        budget=search.budget,
        max_results=search.max_results,
    )
    return ScrapeStartedResponse()
