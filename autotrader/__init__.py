"""
Root package of the autotrader.ca home-delivery scraper.

This package contains all application components for crawling autotrader.ca
search results and extracting normalized vehicle records, including the crawl
controller, the page extractors, Celery tasks, database models and utilities.

Package structure:
    config: Configuration modules (settings, Celery configuration).
    core: Base components (data models, database connection).
    scraper: Crawl controller, fetcher, extractors, merge engine and sinks.
    tasks: Celery tasks for automation.
    utils: Helper utilities (logging, database helpers).

Attributes:
    celery_app: Celery application instance imported from configuration.
"""

from autotrader.config.celery_config import celery_app

__all__ = ["celery_app"]
