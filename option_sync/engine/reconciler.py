"""Diff stored options against a fresh scrape and converge the store.

``reconcile`` is pure: it only decides which operations are needed.
``apply_operations`` runs them against a store, one at a time, and keeps
going when an individual operation fails.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import structlog

from ..config import IdentityMode, ReconcileStrategy
from ..errors import StoreError
from .models import Operation, OperationKind, Option, stable_option_id
from .store import BaseOptionStore


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of comparing stored and fresh options."""

    equivalent: bool
    operations: tuple[Operation, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.operations)

    def counts(self) -> dict[str, int]:
        summary = {kind.value: 0 for kind in OperationKind}
        for operation in self.operations:
            summary[operation.kind.value] += 1
        return summary


@dataclass(slots=True)
class ApplyReport:
    """Per-operation results of a best-effort batch."""

    applied: int = 0
    failed: int = 0
    errors: list[tuple[Operation, str]] = field(default_factory=list)

    @property
    def mutated(self) -> bool:
        return self.applied > 0


def options_equivalent(
    stored: Sequence[Option], fresh: Sequence[Option], *, compare_ids: bool = False
) -> bool:
    """Equal length and, position by position, equal names (and ids if asked)."""

    if len(stored) != len(fresh):
        return False
    for old, new in zip(stored, fresh):
        if old.name != new.name:
            return False
        if compare_ids and old.id != new.id:
            return False
    return True


def reconcile(
    stored: Sequence[Option],
    fresh: Sequence[Option],
    *,
    strategy: ReconcileStrategy = ReconcileStrategy.PATCH,
    identity: IdentityMode = IdentityMode.NAME,
) -> ReconcileResult:
    """Compute the operations that make ``stored`` match ``fresh``."""

    if options_equivalent(stored, fresh):
        return ReconcileResult(equivalent=True)
    if strategy is ReconcileStrategy.REPLACE:
        operations = _replace_all(fresh)
    elif identity is IdentityMode.POSITION:
        operations = _patch_by_id(stored, fresh)
    else:
        operations = _patch_by_name(stored, fresh)
    return ReconcileResult(equivalent=False, operations=tuple(operations))


def _replace_all(fresh: Sequence[Option]) -> list[Operation]:
    operations = [Operation.delete_all()]
    if fresh:
        operations.append(Operation.upsert_many(list(fresh)))
    return operations


def _patch_by_id(stored: Sequence[Option], fresh: Sequence[Option]) -> list[Operation]:
    stored_by_id = {option.id: option for option in stored}
    fresh_ids = {option.id for option in fresh}
    writes: list[Operation] = []
    for option in fresh:
        existing = stored_by_id.get(option.id)
        if existing is None:
            writes.append(Operation.insert(option))
        elif existing.name != option.name:
            writes.append(Operation.update(option))
    deletes = [Operation.delete(option.id) for option in stored if option.id not in fresh_ids]
    return writes + deletes


def _patch_by_name(stored: Sequence[Option], fresh: Sequence[Option]) -> list[Operation]:
    fresh_names: list[str] = []
    for option in fresh:
        if option.name not in fresh_names:
            fresh_names.append(option.name)
    wanted = set(fresh_names)

    kept: set[str] = set()
    deletes: list[Operation] = []
    for option in stored:
        if option.name in wanted and option.name not in kept:
            kept.add(option.name)
        else:
            deletes.append(Operation.delete(option.id))

    taken_ids = {option.id for option in stored}
    inserts: list[Operation] = []
    for label in fresh_names:
        if label in kept:
            continue
        new_id = stable_option_id(label)
        # a legacy positional row may already hold the derived id
        while new_id in taken_ids:
            new_id = stable_option_id(f"{new_id}:{label}")
        taken_ids.add(new_id)
        inserts.append(Operation.insert(Option(id=new_id, name=label)))
    return inserts + deletes


def apply_operations(
    store: BaseOptionStore,
    operations: Sequence[Operation],
    logger: structlog.BoundLogger | None = None,
) -> ApplyReport:
    """Run ``operations`` in order; a failing one is logged and skipped."""

    log = logger or structlog.get_logger("option_sync.reconciler")
    report = ApplyReport()
    for operation in operations:
        try:
            _apply_one(store, operation)
        except StoreError as exc:
            report.failed += 1
            report.errors.append((operation, str(exc)))
            log.error("apply_operation_failed", operation=operation.describe(), error=str(exc))
        else:
            report.applied += 1
    return report


def _apply_one(store: BaseOptionStore, operation: Operation) -> None:
    kind = operation.kind
    if kind is OperationKind.INSERT:
        store.insert_one(Option(id=operation.id, name=operation.name))
    elif kind is OperationKind.UPDATE:
        store.update_by_id(operation.id, operation.name)
    elif kind is OperationKind.DELETE:
        store.delete_by_id(operation.id)
    elif kind is OperationKind.DELETE_ALL:
        store.delete_all()
    elif kind is OperationKind.UPSERT_MANY:
        store.upsert_many(operation.options)
    else:  # pragma: no cover - enum is exhaustive
        raise ValueError(f"Unknown operation kind: {kind}")


__all__ = [
    "ApplyReport",
    "ReconcileResult",
    "apply_operations",
    "options_equivalent",
    "reconcile",
]
