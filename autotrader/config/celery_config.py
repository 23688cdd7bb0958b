"""
Celery settings for managing scraping tasks.

This module initializes and configures a Celery instance for scheduling
and executing scraping tasks. Settings are loaded from the settings.py module.

The module automatically creates one periodic task: a daily crawl of the
autotrader.ca home-delivery search with the search input from settings.

Attributes:
    celery_app (Celery): Celery application instance configured
        to work with the autotrader scraper project.

    scraper_hour (int): Scraper start hour, extracted from SCRAPER_START_TIME.
    scraper_minute (int): Scraper start minute, extracted from SCRAPER_START_TIME.

Note:
    Celery requires a running Redis server specified in settings.
    Worker is configured to restart after each task to avoid memory leaks.
"""

from celery import Celery
from celery.schedules import crontab

from autotrader.config.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    SCRAPER_START_TIME,
)

# Create Celery instance
celery_app = Celery(
    "autotrader_scraper",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    include=["autotrader.tasks.scraping"],
)

# Celery settings
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="America/Toronto",
    enable_utc=True,
    worker_max_tasks_per_child=1,  # Restart worker after each task to avoid memory leaks
)

# Parse time from settings
scraper_hour, scraper_minute = map(int, SCRAPER_START_TIME.split(":"))

# Configure periodic tasks
celery_app.conf.beat_schedule = {
    "scrape-autotrader-daily": {
        "task": "autotrader.tasks.scraping.scrape_autotrader",
        "schedule": crontab(hour=scraper_hour, minute=scraper_minute),
    },
}

if __name__ == "__main__":
    celery_app.start()
