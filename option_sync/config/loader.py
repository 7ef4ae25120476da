"""Configuration loading helpers for option-sync."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import AppConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "option_sync.yaml"
HOME_ENV_VAR = "OPTION_SYNC_HOME"

# environment variable -> (section, field)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "CRON_SECRET": ("auth", "cron_secret"),
    "TELEGRAM_BOT_TOKEN": ("notifier", "bot_token"),
    "TELEGRAM_CHAT_ID": ("notifier", "chat_id"),
    "OPTION_SYNC_TARGET_URL": ("target", "url"),
    "OPTION_SYNC_DATABASE": ("storage", "database_path"),
}

# secrets never written back to disk by save()
_SECRET_FIELDS: tuple[tuple[str, str], ...] = (
    ("auth", "cron_secret"),
    ("notifier", "bot_token"),
)


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot parse configuration file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


def apply_env_overrides(payload: dict, environ: Mapping[str, str]) -> dict:
    """Return a copy of ``payload`` with environment values layered on top."""

    merged: dict[str, Any] = {key: dict(value) if isinstance(value, dict) else value for key, value in payload.items()}
    for env_name, (section, field) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        merged.setdefault(section, {})
        if not isinstance(merged[section], dict):
            raise ConfigError(f"Configuration section '{section}' must be a mapping")
        merged[section][field] = value
    return merged


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from the project home."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV_VAR)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(
        self,
        locator: ConfigLocator | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.locator = locator or ConfigLocator()
        self.environ = os.environ if environ is None else environ
        self._cache: AppConfig | None = None

    def load(self) -> AppConfig:
        if self._cache is not None:
            return self._cache
        path = self.locator.config_path()
        if path.exists():
            payload = _read_file(path)
        else:
            payload = AppConfig().model_dump(mode="json")
            _write_file(path, self._without_secrets(payload))
        payload = apply_env_overrides(payload, self.environ)
        try:
            config = AppConfig.model_validate(payload)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration in {path}:\n{exc}") from exc
        self._cache = config
        return config

    def save(self, config: AppConfig) -> Path:
        path = self.locator.config_path()
        _write_file(path, self._without_secrets(config.model_dump(mode="json")))
        self._cache = None
        return path

    def reload(self) -> AppConfig:
        self._cache = None
        return self.load()

    def database_path(self, config: AppConfig | None = None) -> Path:
        config = config or self.load()
        return config.storage.resolved_database_path(self.locator.project_root)

    @staticmethod
    def _without_secrets(payload: dict) -> dict:
        cleaned = {key: dict(value) if isinstance(value, dict) else value for key, value in payload.items()}
        for section, field in _SECRET_FIELDS:
            if isinstance(cleaned.get(section), dict):
                cleaned[section][field] = None
        return cleaned


__all__ = [
    "CONFIG_EXTENSIONS",
    "CONFIG_FILENAME",
    "ConfigLocator",
    "ConfigRepository",
    "ENV_OVERRIDES",
    "HOME_ENV_VAR",
    "apply_env_overrides",
]
