"""Pydantic models used across the option-sync configuration flow."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ReconcileStrategy(str, Enum):
    """How a detected difference is written back to the store."""

    PATCH = "patch"
    REPLACE = "replace"


class IdentityMode(str, Enum):
    """What identifies an option across runs."""

    NAME = "name"
    POSITION = "position"


class EmptyScrapePolicy(str, Enum):
    """What to do when the scrape returns no options at all."""

    ABORT = "abort"
    WIPE = "wipe"


class ScheduleType(str, Enum):
    """Scheduler modes for periodic runs."""

    CRON = "cron"
    INTERVAL = "interval"


class TargetConfig(BaseModel):
    """Page to scrape and how to pick the option labels out of it."""

    url: str = "https://next-ecommerce-nine-omega.vercel.app/"
    option_pattern: str = Field(
        default=".grid .product-brand",
        description="CSS selector, optionally suffixed with '::text' or '::attr:<name>'.",
    )
    timeout: float = 15.0
    user_agent: str | None = None

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("target url must start with http:// or https://")
        return value

    @field_validator("option_pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        if not value.split("::", 1)[0].strip():
            raise ValueError("option_pattern cannot be empty")
        return value.strip()

    @field_validator("timeout")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be > 0")
        return value


class ReconcileConfig(BaseModel):
    """Reconciliation policy; fixed for the lifetime of a deployment."""

    strategy: ReconcileStrategy = ReconcileStrategy.PATCH
    identity: IdentityMode = IdentityMode.NAME
    empty_scrape: EmptyScrapePolicy = EmptyScrapePolicy.ABORT


class StorageConfig(BaseModel):
    """Location of the SQLite options table."""

    database_path: Path = Field(default=Path("data/options.db"))
    table: str = "options"

    @field_validator("database_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("table")
    @classmethod
    def _validate_table(cls, value: str) -> str:
        if not _IDENTIFIER.match(value):
            raise ValueError(f"table must be a plain SQL identifier: {value!r}")
        return value

    def resolved_database_path(self, base_dir: Path) -> Path:
        """Return the database path relative to the project home."""

        if not self.database_path.is_absolute():
            return (base_dir / self.database_path).resolve()
        return self.database_path


class NotifierConfig(BaseModel):
    """Telegram bot used to announce table changes."""

    bot_token: str | None = None
    chat_id: str | None = None
    api_base: str = "https://api.telegram.org"
    message_template: str = "Options table updated at {timestamp}."
    timeout: float = 10.0

    @field_validator("bot_token", "chat_id", mode="before")
    @classmethod
    def _normalise_credentials(cls, value: Any) -> Any:
        # chat ids are frequently written as bare (negative) integers in YAML
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("message_template")
    @classmethod
    def _validate_template(cls, value: str) -> str:
        try:
            value.format(timestamp="", inserted=0, updated=0, deleted=0)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(
                "message_template may only use {timestamp}, {inserted}, {updated} and {deleted}: "
                f"{exc!r}"
            ) from exc
        return value

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)


class AuthConfig(BaseModel):
    """Shared secret expected in the trigger's Authorization header."""

    cron_secret: str | None = None

    @field_validator("cron_secret", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def expected_header(self) -> str | None:
        if not self.cron_secret:
            return None
        return f"Bearer {self.cron_secret}"


class ScheduleConfig(BaseModel):
    """When the in-process scheduler should run a sync."""

    type: ScheduleType = Field(default=ScheduleType.INTERVAL)
    value: Any = Field(
        default=3600,
        description="Cron expression, or interval seconds / IntervalTrigger kwargs.",
    )

    @model_validator(mode="after")
    def _validate_value(self) -> "ScheduleConfig":
        if self.type is ScheduleType.CRON and not isinstance(self.value, str):
            raise ValueError("Cron schedule requires string expression")
        if self.type is ScheduleType.INTERVAL and not isinstance(self.value, (int, float, dict)):
            raise ValueError("Interval schedule requires seconds (int/float) or kwargs dict")
        return self


class ServerConfig(BaseModel):
    """Bind address for the HTTP trigger."""

    host: str = "127.0.0.1"
    port: int = 8000

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("port must be between 1 and 65535")
        return value


class AppConfig(BaseModel):
    """Complete runtime configuration, validated once at start-up."""

    target: TargetConfig = Field(default_factory=TargetConfig)
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


__all__ = [
    "AppConfig",
    "AuthConfig",
    "EmptyScrapePolicy",
    "IdentityMode",
    "NotifierConfig",
    "ReconcileConfig",
    "ReconcileStrategy",
    "ScheduleConfig",
    "ScheduleType",
    "ServerConfig",
    "StorageConfig",
    "TargetConfig",
]
