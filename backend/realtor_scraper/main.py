"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager

import sentry_sdk
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from realtor_scraper import __version__
from realtor_scraper.api import router as api_router
from realtor_scraper.config import get_settings

settings = get_settings()
logger = structlog.get_logger()

# Initialize Sentry if configured
if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(
        "Starting realtor scraper",
        environment=settings.environment,
        browserless_configured=settings.browserless_configured,
        concurrency=settings.concurrency,
    )
    if not settings.browserless_configured:
        logger.warning("BROWSERLESS_TOKEN not set, scrape requests will be refused")
    yield
    # Shutdown
    logger.info("Shutting down realtor scraper")


app = FastAPI(
    title="Realtor Scraper",
    description="Listing discovery and extraction with webhook delivery",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router)


@app.get("/")
async def index():
    """Service info."""
    current = get_settings()
    return {
        "status": "running",
        "service": "realtor scraper",
        "browserless": current.browserless_configured,
        "message": "POST to /scrape-webhook to start scraping",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    current = get_settings()
    return {
        "status": "healthy",
        "version": __version__,
        "browserlessConfigured": current.browserless_configured,
    }
