"""
Page parsers.

Modules:
    search_page: Link discovery on search result pages.
    structured_model: Extractor for the page model embedded in scripts.
    linked_data: Extractor for schema.org JSON-LD blocks.
    car_page: Heuristic DOM extractor for detail pages.
"""
