"""Pipeline orchestration for scrape requests."""

from realtor_scraper.engines.pipeline.orchestrator import (
    PipelineOrchestrator,
    PipelineState,
    PipelineSummary,
    run_scrape,
)
from realtor_scraper.engines.pipeline.worker_pool import BoundedWorkerPool
from realtor_scraper.engines.pipeline.emitter import WebhookEmitter

__all__ = [
    "PipelineOrchestrator",
    "PipelineState",
    "PipelineSummary",
    "run_scrape",
    "BoundedWorkerPool",
    "WebhookEmitter",
]
