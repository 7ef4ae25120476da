"""Shared fixtures and in-process doubles for the option-sync test-suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from option_sync.config import (
    AppConfig,
    AuthConfig,
    ConfigLocator,
    ConfigRepository,
    NotifierConfig,
    ReconcileConfig,
    StorageConfig,
    TargetConfig,
)
from option_sync.engine import BaseOptionStore, FetchResponse, Option, SQLiteOptionStore, TelegramNotifier
from option_sync.errors import FetchError, StoreError, StoreReadError
from option_sync.infra import SQLiteManager
from option_sync.orchestrator import Orchestrator

PAGE_TEMPLATE = """
<html><body>
<div class="grid">
{items}
</div>
</body></html>
"""


def render_page(labels: Iterable[str]) -> str:
    items = "\n".join(f'<div class="card"><span class="product-brand">{label}</span></div>' for label in labels)
    return PAGE_TEMPLATE.format(items=items)


class MemoryOptionStore(BaseOptionStore):
    """Dict-backed store that records every call and can be told to fail."""

    def __init__(
        self,
        options: Iterable[Option] = (),
        fail_read: bool = False,
        fail_ids: Iterable[int] = (),
        fail_kinds: Iterable[str] = (),
    ) -> None:
        self.rows: dict[int, str] = {option.id: option.name for option in options}
        self.fail_read = fail_read
        self.fail_ids = set(fail_ids)
        self.fail_kinds = set(fail_kinds)
        self.calls: list[tuple[Any, ...]] = []

    def _check(self, kind: str, option_id: int | None = None) -> None:
        if kind in self.fail_kinds or (option_id is not None and option_id in self.fail_ids):
            raise StoreError(f"{kind} refused for {option_id}")

    def select_all(self) -> list[Option]:
        self.calls.append(("select_all",))
        if self.fail_read:
            raise StoreReadError("connection refused")
        return [Option(option_id, name) for option_id, name in sorted(self.rows.items())]

    def insert_one(self, option: Option) -> None:
        self.calls.append(("insert", option.id, option.name))
        self._check("insert", option.id)
        if option.id in self.rows:
            raise StoreError(f"duplicate id {option.id}")
        self.rows[option.id] = option.name

    def update_by_id(self, option_id: int, name: str) -> None:
        self.calls.append(("update", option_id, name))
        self._check("update", option_id)
        if option_id not in self.rows:
            raise StoreError(f"missing id {option_id}")
        self.rows[option_id] = name

    def delete_by_id(self, option_id: int) -> None:
        self.calls.append(("delete", option_id))
        self._check("delete", option_id)
        self.rows.pop(option_id, None)

    def delete_all(self) -> None:
        self.calls.append(("delete_all",))
        self._check("delete_all")
        self.rows.clear()

    def upsert_many(self, options: Iterable[Option]) -> None:
        options = list(options)
        self.calls.append(("upsert_many", len(options)))
        self._check("upsert_many")
        for option in options:
            self.rows[option.id] = option.name

    @property
    def mutations(self) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] != "select_all"]


class StaticFetcher:
    """Fetcher double returning a canned page (or raising)."""

    def __init__(self, html: str = "", error: Exception | None = None) -> None:
        self.html = html
        self.error = error
        self.calls = 0
        self.closed = False

    def __enter__(self) -> "StaticFetcher":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.closed = True

    def fetch_page(self) -> FetchResponse:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return FetchResponse(url="https://shop.example/", status_code=200, text=self.html, headers={})


class RecordingNotifier(TelegramNotifier):
    """Notifier that keeps messages instead of calling Telegram."""

    def __init__(self, result: bool = True) -> None:
        super().__init__(NotifierConfig(bot_token="token", chat_id="42"))
        self.result = result
        self.messages: list[str] = []

    def notify(self, text: str) -> bool:
        self.messages.append(text)
        return self.result


@pytest.fixture
def app_config() -> Callable[..., AppConfig]:
    def _builder(**overrides: Any) -> AppConfig:
        base: dict[str, Any] = {
            "target": TargetConfig(url="https://shop.example/", option_pattern=".grid .product-brand"),
            "reconcile": ReconcileConfig(),
            "storage": StorageConfig(database_path=Path("data/test.db")),
            "notifier": NotifierConfig(bot_token="token", chat_id="42"),
            "auth": AuthConfig(cron_secret="s3cret"),
        }
        base.update(overrides)
        return AppConfig(**base)

    return _builder


@pytest.fixture
def memory_store() -> Callable[..., MemoryOptionStore]:
    return MemoryOptionStore


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Iterable[SQLiteOptionStore]:
    manager = SQLiteManager()
    store = SQLiteOptionStore(manager, tmp_path / "options.db")
    yield store
    manager.close_all()


@pytest.fixture
def build_orchestrator(app_config) -> Callable[..., tuple[Orchestrator, StaticFetcher, RecordingNotifier]]:
    def _builder(
        store: BaseOptionStore,
        labels: Iterable[str] | None = None,
        fetch_error: FetchError | None = None,
        config: AppConfig | None = None,
    ) -> tuple[Orchestrator, StaticFetcher, RecordingNotifier]:
        fetcher = StaticFetcher(render_page(labels or []), error=fetch_error)
        notifier = RecordingNotifier()
        orchestrator = Orchestrator(
            config or app_config(),
            store,
            notifier=notifier,
            fetcher_factory=lambda: fetcher,
        )
        return orchestrator, fetcher, notifier

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigRepository:
    monkeypatch.setenv("OPTION_SYNC_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    return ConfigRepository(locator, environ={})


@pytest.fixture
def page_html() -> Callable[[Iterable[str]], str]:
    return render_page
