"""Realtor listing scraper with webhook delivery."""

__version__ = "0.1.0"
