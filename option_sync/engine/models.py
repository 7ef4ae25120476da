"""Records and operations exchanged between the engine components."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

# keep derived ids inside SQLite's signed 64-bit INTEGER range
_ID_MASK = 0x7FFF_FFFF_FFFF_FFFF


@dataclass(frozen=True, slots=True)
class Option:
    """One selectable value scraped from the target page."""

    id: int
    name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Option":
        return cls(id=int(row["id"]), name=str(row["name"]))

    def as_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


def stable_option_id(name: str) -> int:
    """Derive a deterministic row id from an option label."""

    digest = hashlib.blake2b(name.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") & _ID_MASK


class OperationKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    DELETE_ALL = "delete_all"
    UPSERT_MANY = "upsert_many"


@dataclass(frozen=True, slots=True)
class Operation:
    """A single mutation to run against the option store."""

    kind: OperationKind
    id: int | None = None
    name: str | None = None
    options: tuple[Option, ...] = field(default=())

    @classmethod
    def insert(cls, option: Option) -> "Operation":
        return cls(OperationKind.INSERT, id=option.id, name=option.name)

    @classmethod
    def update(cls, option: Option) -> "Operation":
        return cls(OperationKind.UPDATE, id=option.id, name=option.name)

    @classmethod
    def delete(cls, option_id: int) -> "Operation":
        return cls(OperationKind.DELETE, id=option_id)

    @classmethod
    def delete_all(cls) -> "Operation":
        return cls(OperationKind.DELETE_ALL)

    @classmethod
    def upsert_many(cls, options: tuple[Option, ...] | list[Option]) -> "Operation":
        return cls(OperationKind.UPSERT_MANY, options=tuple(options))

    def describe(self) -> str:
        if self.kind is OperationKind.UPSERT_MANY:
            return f"upsert_many({len(self.options)})"
        if self.kind is OperationKind.DELETE_ALL:
            return "delete_all"
        if self.kind is OperationKind.DELETE:
            return f"delete({self.id})"
        return f"{self.kind.value}({self.id}, {self.name!r})"


__all__ = ["Operation", "OperationKind", "Option", "stable_option_id"]
