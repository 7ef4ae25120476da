"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    AppConfig,
    AuthConfig,
    EmptyScrapePolicy,
    IdentityMode,
    NotifierConfig,
    ReconcileConfig,
    ReconcileStrategy,
    ScheduleConfig,
    ScheduleType,
    ServerConfig,
    StorageConfig,
    TargetConfig,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "ConfigLocator",
    "ConfigRepository",
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
