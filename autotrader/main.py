"""
Command-line entry point of the autotrader.ca scraper.

Runs a single crawl in the foreground and exits. The search input comes from
a JSON document given as the only argument, or from the SEARCH_* settings
when no argument is given. Scheduled crawls run through Celery instead
(celery -A autotrader worker -B).

Attributes:
    logger: Logger for registering main module events.

Functions:
    signal_handler: Exit cleanly on SIGINT/SIGTERM.
    load_search_input: Read a search input document from a JSON file.
    main: Entry point.
"""

import json
import signal
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

from autotrader.config.settings import JSONL_FILE, OUTPUT_DIR, RESULT_SINK
from autotrader.core.database import count_vehicles, init_db
from autotrader.tasks.scraping import run_scrape
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)


def signal_handler(signum: int, frame: Any) -> NoReturn:
    logger.info(f"Received signal {signum}. Shutting down...")
    sys.exit(0)


def load_search_input(path: str) -> Dict[str, Any]:
    """
    Read a search input document.

    Args:
        path (str): JSON file with the same keys as the manual task payload
            (make, model, resultsWanted, startUrls...).

    Returns:
        Dict[str, Any]: Parsed document.

    Raises:
        ValueError: If the file does not hold a JSON object.
    """
    with Path(path).open(encoding="utf-8") as fh:
        document = json.load(fh)
    if not isinstance(document, dict):
        raise ValueError(f"Search input in {path} must be a JSON object")
    return document


def main(argv: Optional[List[str]] = None) -> None:
    """
    Run one crawl and persist its records.

    Args:
        argv (Optional[List[str]]): Command-line arguments without the program
            name; sys.argv[1:] by default. An optional single argument is the
            path of a search input JSON file.

    Raises:
        SystemExit: Status 1 on a fatal error (unreadable input, database,
            seed pages or sink).
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    args = sys.argv[1:] if argv is None else argv

    try:
        search_input = load_search_input(args[0]) if args else None
        uses_database = RESULT_SINK == "database"
        if uses_database:
            init_db()

        stats = run_scrape(search_input)
        logger.info(f"Run finished: {stats}")
        if uses_database:
            logger.info(f"Vehicles stored in database: {count_vehicles()}")
        else:
            logger.info(f"Wrote {stats.get('saved', 0)} vehicles to {OUTPUT_DIR / JSONL_FILE}")

    except Exception as e:
        logger.critical(f"Critical error: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
