"""
Celery tasks package for scraping.

This package contains Celery tasks that are executed on schedule
or can be run manually to crawl autotrader.ca home-delivery listings.

Modules:
    scraping: Tasks for automatic and manual launch of the crawler.
"""
