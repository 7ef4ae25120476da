"""Scrape selectable options from a web page and keep a stored table in sync."""

__version__ = "0.1.0"
