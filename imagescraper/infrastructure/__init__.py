"""Infrastructure Package

This package contains infrastructure layer components shared by the HTTP
handlers and the scraping workers. Currently that is the queued logging
subsystem in ``imagescraper.infrastructure.logging``.
"""
