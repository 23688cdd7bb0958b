"""
The config package contains application settings.

This package includes all configuration files for the autotrader scraper project,
providing centralized access to database, Redis, Celery, logging settings,
search input and crawl parameters.

Modules:
    settings: Main application settings, including paths, database and logging parameters.
    celery_config: Celery settings for scheduling scraping tasks.
"""
