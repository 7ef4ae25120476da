"""Option store SPI and implementations."""

from .base import BaseOptionStore
from .sqlite_store import SQLiteOptionStore

__all__ = ["BaseOptionStore", "SQLiteOptionStore"]
