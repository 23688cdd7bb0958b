"""
Main application settings.

This module contains all main configuration parameters for the autotrader.ca scraper.
Settings are loaded from environment variables using python-dotenv,
with default values in case of missing variables.

Attributes:
    BASE_DIR (Path): Base application directory (APP_DIR variable, current directory by default).
    LOGS_DIR (Path): Directory for storing application logs.
    OUTPUT_DIR (Path): Directory for JSON-lines exports.

    POSTGRES_DB (str): PostgreSQL database name.
    POSTGRES_USER (str): PostgreSQL username.
    POSTGRES_PASSWORD (str): PostgreSQL user password.
    POSTGRES_HOST (str): PostgreSQL host.
    POSTGRES_PORT (str): PostgreSQL port.
    DATABASE_URL (str): Full URL for database connection.

    REDIS_HOST (str): Redis host.
    REDIS_PORT (str): Redis port.
    REDIS_URL (str): Full URL for Redis connection.

    CELERY_BROKER_URL (str): Message broker URL for Celery.
    CELERY_RESULT_BACKEND (str): Result backend URL for Celery.

    AUTOTRADER_BASE_URL (str): Search root of the listing site.
    PAGE_SIZE (int): Number of listings per search page (rcp parameter).
    SCRAPER_START_TIME (str): Daily scraping start time in "HH:MM" format.
    SCRAPER_CONCURRENCY (int): Number of concurrent worker tasks.
    RESULTS_WANTED (int): Default result budget of a run.
    MAX_PAGES (int): Default ceiling of search pages per seed.
    SINK_BATCH_SIZE (int): Number of accepted records flushed to the sink at once.
    RESULT_SINK (str): Where accepted records go: "database" or "jsonl".
    JSONL_FILE (str): File name of the JSON-lines export inside OUTPUT_DIR.
    FETCH_RETRIES (int): Number of attempts per request made by the fetcher.
    FETCH_TIMEOUT (float): Per-request timeout in seconds.
    FETCH_RETRY_DELAY (float): Base delay between fetch attempts in seconds.
    PROXY_URL (str): Optional proxy passed to the HTTP client.

    SEARCH_INPUT (dict): Search input document assembled from SEARCH_* variables.

    LOG_LEVEL (str): Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    LOG_FILE (str): Log file name.
    LOG_FORMAT (str): Log entry format.
    LOG_DATE_FORMAT (str): Date and time format in logs.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(os.getenv("APP_DIR", os.getcwd()))
LOGS_DIR = BASE_DIR / "logs"
OUTPUT_DIR = BASE_DIR / "output"

# Create directories if they don't exist
LOGS_DIR.mkdir(parents=True, exist_ok=True)
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

# Database settings
POSTGRES_DB = os.getenv("POSTGRES_DB", "autotrader")
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres_password")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "db")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# Redis settings
REDIS_HOST = os.getenv("REDIS_HOST", "redis")
REDIS_PORT = os.getenv("REDIS_PORT", "6379")
REDIS_URL = f"redis://{REDIS_HOST}:{REDIS_PORT}/0"

# Celery settings
CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = REDIS_URL

# Scraper settings
AUTOTRADER_BASE_URL = os.getenv("AUTOTRADER_BASE_URL", "https://www.autotrader.ca/cars")
PAGE_SIZE = 15  # Fixed by the site's search API
SCRAPER_START_TIME = os.getenv("SCRAPER_START_TIME", "06:00")
SCRAPER_CONCURRENCY = int(os.getenv("SCRAPER_CONCURRENCY", "5"))
RESULTS_WANTED = int(os.getenv("RESULTS_WANTED", "50"))
MAX_PAGES = int(os.getenv("MAX_PAGES", "20"))
SINK_BATCH_SIZE = int(os.getenv("SINK_BATCH_SIZE", "10"))
RESULT_SINK = os.getenv("RESULT_SINK", "database").lower()
JSONL_FILE = os.getenv("JSONL_FILE", "vehicles.jsonl")
FETCH_RETRIES = int(os.getenv("FETCH_RETRIES", "3"))
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "30"))
FETCH_RETRY_DELAY = float(os.getenv("FETCH_RETRY_DELAY", "5"))
PROXY_URL = os.getenv("PROXY_URL") or None

# Search input (same keys as the manual task payload)
SEARCH_INPUT = {
    "make": os.getenv("SEARCH_MAKE", ""),
    "model": os.getenv("SEARCH_MODEL", ""),
    "province": os.getenv("SEARCH_PROVINCE", ""),
    "city": os.getenv("SEARCH_CITY", ""),
    "minYear": os.getenv("SEARCH_MIN_YEAR"),
    "maxYear": os.getenv("SEARCH_MAX_YEAR"),
    "minPrice": os.getenv("SEARCH_MIN_PRICE"),
    "maxPrice": os.getenv("SEARCH_MAX_PRICE"),
    "minMileage": os.getenv("SEARCH_MIN_MILEAGE"),
    "maxMileage": os.getenv("SEARCH_MAX_MILEAGE"),
    "bodyType": os.getenv("SEARCH_BODY_TYPE"),
    "fuelType": os.getenv("SEARCH_FUEL_TYPE"),
    "transmission": os.getenv("SEARCH_TRANSMISSION"),
    "startUrls": [u for u in os.getenv("START_URLS", "").split(",") if u.strip()],
    "resultsWanted": RESULTS_WANTED,
    "maxPages": MAX_PAGES,
    "proxyConfiguration": PROXY_URL,
}

# Logging settings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "scraper.log")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
