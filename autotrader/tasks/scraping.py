"""
Celery tasks for autotrader.ca scraping (asynchronous launch).

This module contains Celery tasks for automatic and manual launch of the
crawl. Tasks build a SearchQuery from an input document, run the asynchronous
AutoTraderScraper with the sink chosen by RESULT_SINK (database by default),
and report run statistics.

Attributes:
    logger: Logger for registering scraping events.
    celery_app: Celery application instance imported from configuration.
    SEARCH_INPUT: Search input assembled from environment variables.

Functions:
    run_scrape: Build and run one crawl from an input document.
    scrape_autotrader: Task for automatic scraping launch on schedule.
    manual_scrape: Task for manual scraping launch with a custom input.
"""

import asyncio
from typing import Any, Dict, Mapping, Optional

from autotrader.config.celery_config import celery_app
from autotrader.config.settings import SEARCH_INPUT
from autotrader.scraper.autotrader import AutoTraderScraper
from autotrader.scraper.sink import make_sink
from autotrader.scraper.types import SearchQuery
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)


def run_scrape(search_input: Optional[Mapping[str, Any]] = None) -> Dict[str, int]:
    """
    Build a query from search_input and run one crawl to completion.

    Args:
        search_input (Optional[Mapping[str, Any]]): Raw input document,
            SEARCH_INPUT from settings when omitted.

    Returns:
        Dict[str, int]: Run statistics returned by AutoTraderScraper.run().
    """
    query = SearchQuery.from_input(search_input if search_input is not None else SEARCH_INPUT)
    scraper = AutoTraderScraper(query, sink=make_sink())
    return asyncio.run(scraper.run())


@celery_app.task(bind=True, max_retries=3, name="autotrader.tasks.scraping.scrape_autotrader")
def scrape_autotrader(self):
    """
    Task for launching the autotrader.ca crawl on schedule.

    Uses the search input from settings. In case of error tries to repeat
    execution up to three times with exponential delay between attempts.

    Args:
        self: Celery task instance provided by bind=True decorator.

    Returns:
        dict: Task execution result with keys:
            - status (str): "success" or "error"
            - accepted (int): Number of accepted vehicles (on success)
            - saved (int): Number of new records saved (on success)
            - error (str): Error text (on failure)

    Note:
        Each attempt increases wait time: 60s, 120s, 240s.
    """
    logger.info("Starting autotrader.ca scraping task")

    try:
        stats = run_scrape()

        logger.info(
            f"Autotrader scraping completed. Accepted {stats.get('accepted', 0)} vehicles, "
            f"added {stats.get('saved', 0)} new records"
        )

        return {
            "status": "success",
            "accepted": stats.get("accepted", 0),
            "saved": stats.get("saved", 0),
        }

    except Exception as e:
        logger.error(f"Error executing scraping task: {str(e)}", exc_info=True)
        # Retry task on error with exponential delay
        self.retry(exc=e, countdown=60 * (2**self.request.retries))

        return {"status": "error", "error": str(e)}


@celery_app.task(name="autotrader.tasks.scraping.manual_scrape")
def manual_scrape(search_input=None):
    """
    Task for manual scraping launch with a custom search input.

    Unlike the scheduled task, does not perform retry attempts on error.

    Args:
        search_input (dict, optional): Input document (make, model, province,
            city, minYear, maxPrice, resultsWanted, maxPages, startUrls...).
            Settings input is used when omitted.

    Returns:
        dict: Task execution result with status, statistics on success or
            error text on failure.

    Examples:
        >>> result = manual_scrape.delay({"make": "honda", "model": "civic", "resultsWanted": 5})
    """
    logger.info(f"Starting manual scraping with input: {search_input or 'settings'}")

    try:
        stats = run_scrape(search_input)

        logger.info(
            f"Manual scraping completed. Accepted {stats.get('accepted', 0)} vehicles, "
            f"added {stats.get('saved', 0)} new records"
        )

        return {"status": "success", **stats}

    except Exception as e:
        logger.error(f"Error executing manual scraping: {str(e)}", exc_info=True)

        return {"status": "error", "error": str(e)}
