"""Run coordinator wiring fetch, extract, reconcile, store and notify."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable

from .config import AppConfig, EmptyScrapePolicy
from .engine import (
    BaseOptionStore,
    Extractor,
    Fetcher,
    Option,
    SQLiteOptionStore,
    TelegramNotifier,
    apply_operations,
    reconcile,
)
from .errors import EmptyScrapeError, FetchError
from .infra import SQLiteManager
from .logging_conf import get_logger


class SyncStatus(str, Enum):
    UNCHANGED = "unchanged"
    UPDATED = "updated"
    SCRAPE_FAILED = "scrape_failed"
    EMPTY_SCRAPE = "empty_scrape"


@dataclass(slots=True)
class SyncSummary:
    """What a single run saw and did."""

    run_id: str
    status: SyncStatus
    started_at: datetime
    scraped: int = 0
    stored: int = 0
    operations: dict[str, int] = field(default_factory=dict)
    applied: int = 0
    failed: int = 0
    notified: bool = False
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.applied > 0

    def message(self) -> str:
        if self.status is SyncStatus.UNCHANGED:
            if self.failed:
                return f"Options unchanged ({self.failed} operations failed)"
            return "Options unchanged"
        if self.status is SyncStatus.UPDATED:
            text = f"Options updated ({self.applied} applied"
            if self.failed:
                text += f", {self.failed} failed"
            return text + ")"
        if self.status is SyncStatus.EMPTY_SCRAPE:
            return "Scrape returned no options; stored options left unchanged"
        return "Scrape failed; stored options left unchanged"

    def as_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "scraped": self.scraped,
            "stored": self.stored,
            "operations": dict(self.operations),
            "applied": self.applied,
            "failed": self.failed,
            "notified": self.notified,
            "error": self.error,
        }


class Orchestrator:
    """Central coordinator for one synchronisation run.

    Runs are sequential and hold no lock on the store: two overlapping runs
    each diff against their own read of the table.
    """

    def __init__(
        self,
        config: AppConfig,
        store: BaseOptionStore,
        notifier: TelegramNotifier | None = None,
        fetcher_factory: Callable[[], Fetcher] | None = None,
        extractor: Extractor | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.notifier = notifier or TelegramNotifier(config.notifier)
        self.fetcher_factory = fetcher_factory or (lambda: Fetcher(config.target))
        self.extractor = extractor or Extractor()
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config(cls, config: AppConfig, database_path: Path, storage: SQLiteManager) -> "Orchestrator":
        store = SQLiteOptionStore(storage, database_path, config.storage.table)
        return cls(config, store)

    def scrape(self) -> list[Option]:
        with self.fetcher_factory() as fetcher:
            page = fetcher.fetch_page()
        return self.extractor.extract(page.text, self.config.target.option_pattern)

    def run_sync(self) -> SyncSummary:
        """Fetch, reconcile and notify once.

        Fetch failures end the run without touching the store. A failure to
        read the stored options is raised as ``StoreReadError``.
        """

        run_id = uuid.uuid4().hex[:12]
        log = self.logger.bind(run_id=run_id)
        summary = SyncSummary(run_id=run_id, status=SyncStatus.UNCHANGED, started_at=datetime.now(timezone.utc))
        log.info("sync_started", url=self.config.target.url)

        try:
            fresh = self.scrape()
        except FetchError as exc:
            summary.status = SyncStatus.SCRAPE_FAILED
            summary.error = str(exc)
            log.error("scrape_failed", error=str(exc))
            return summary
        summary.scraped = len(fresh)
        log.info("scrape_completed", scraped=len(fresh))

        stored = self.store.select_all()
        summary.stored = len(stored)

        try:
            self._guard_empty_scrape(stored, fresh)
        except EmptyScrapeError as exc:
            summary.status = SyncStatus.EMPTY_SCRAPE
            summary.error = str(exc)
            log.warning("empty_scrape_aborted", stored=len(stored))
            return summary

        result = reconcile(
            stored,
            fresh,
            strategy=self.config.reconcile.strategy,
            identity=self.config.reconcile.identity,
        )
        summary.operations = result.counts()
        log.info(
            "reconcile_completed",
            equivalent=result.equivalent,
            changed=result.changed,
            **{f"ops_{kind}": count for kind, count in summary.operations.items() if count},
        )
        if not result.changed:
            return summary

        report = apply_operations(self.store, result.operations, logger=log)
        summary.applied = report.applied
        summary.failed = report.failed
        log.info("operations_applied", applied=report.applied, failed=report.failed)
        if report.mutated:
            summary.status = SyncStatus.UPDATED
            summary.notified = self.notifier.notify_change(
                inserted=summary.operations.get("insert", 0),
                updated=summary.operations.get("update", 0),
                deleted=summary.operations.get("delete", 0),
            )
        return summary

    def list_options(self) -> list[Option]:
        return self.store.select_all()

    def _guard_empty_scrape(self, stored: list[Option], fresh: list[Option]) -> None:
        if fresh or not stored:
            return
        if self.config.reconcile.empty_scrape is EmptyScrapePolicy.ABORT:
            raise EmptyScrapeError(
                f"No options matched '{self.config.target.option_pattern}' while {len(stored)} are stored",
                url=self.config.target.url,
            )


__all__ = ["Orchestrator", "SyncStatus", "SyncSummary"]
