"""API routes module."""

from fastapi import APIRouter

from realtor_scraper.api import scrape

router = APIRouter()

# Scrape trigger (served at the root, e.g. POST /scrape-webhook)
router.include_router(scrape.router, tags=["scrape"])
