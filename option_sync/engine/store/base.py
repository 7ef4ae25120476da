"""Option store Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..models import Option


class BaseOptionStore(ABC):
    """Uniform contract over the persisted ``{id, name}`` table.

    Implementations raise :class:`~option_sync.errors.StoreReadError` when the
    table cannot be read and :class:`~option_sync.errors.StoreError` for any
    failed mutation.
    """

    @abstractmethod
    def select_all(self) -> list[Option]:
        """Return every stored option ordered by id."""

    @abstractmethod
    def insert_one(self, option: Option) -> None:
        """Insert a new row."""

    @abstractmethod
    def update_by_id(self, option_id: int, name: str) -> None:
        """Rename the row with ``option_id``."""

    @abstractmethod
    def delete_by_id(self, option_id: int) -> None:
        """Remove the row with ``option_id``."""

    @abstractmethod
    def delete_all(self) -> None:
        """Remove every row."""

    @abstractmethod
    def upsert_many(self, options: Iterable[Option]) -> None:
        """Insert or overwrite the given rows in one batch."""

    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseOptionStore"]
