"""Exception hierarchy shared by the sync pipeline."""

from __future__ import annotations


class OptionSyncError(Exception):
    """Base class for every error raised by option-sync."""


class ConfigError(OptionSyncError):
    """Configuration file or environment could not be validated."""


class FetchError(OptionSyncError):
    """The target page could not be retrieved."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class EmptyScrapeError(FetchError):
    """The scrape matched nothing while the store still holds options."""


class StoreError(OptionSyncError):
    """A single store operation failed."""


class StoreReadError(StoreError):
    """Stored options could not be read; the run cannot continue."""


class NotificationError(OptionSyncError):
    """The messaging endpoint rejected or never received a notification."""


__all__ = [
    "ConfigError",
    "EmptyScrapeError",
    "FetchError",
    "NotificationError",
    "OptionSyncError",
    "StoreError",
    "StoreReadError",
]
